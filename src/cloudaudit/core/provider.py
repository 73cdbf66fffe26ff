"""
Region metadata and account identity used to scope and label findings
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

import boto3

from .cache import CacheResolver, Present
from .settings import setting_enabled

logger = logging.getLogger(__name__)

AWS = "aws"
AWS_GOVCLOUD = "aws-us-gov"
AWS_CHINA = "aws-cn"

DEFAULT_REGIONS = {
    AWS: "us-east-1",
    AWS_GOVCLOUD: "us-gov-west-1",
    AWS_CHINA: "cn-north-1",
}

# Used when botocore has no endpoint data for a service
FALLBACK_REGIONS = {
    AWS: [
        'us-east-1', 'us-east-2', 'us-west-1', 'us-west-2',
        'eu-west-1', 'eu-west-2', 'eu-central-1', 'ap-southeast-1',
        'ap-southeast-2', 'ap-northeast-1'
    ],
    AWS_GOVCLOUD: ['us-gov-west-1', 'us-gov-east-1'],
    AWS_CHINA: ['cn-north-1', 'cn-northwest-1'],
}

# Cache service names that differ from botocore's
SERVICE_ALIASES = {
    'voiceid': 'voice-id',
}

# Azure services are scanned per location rather than per AWS region
AZURE_LOCATIONS = {
    'pricings': ['global'],
}


def partition_for(settings: Optional[Mapping[str, str]] = None) -> str:
    if setting_enabled(settings, 'govcloud'):
        return AWS_GOVCLOUD
    if setting_enabled(settings, 'china'):
        return AWS_CHINA
    return AWS


class RegionMetadata:
    """Applicable regions per service for one partition"""

    def __init__(self, partition: str = AWS,
                 regions: Optional[Mapping[str, Sequence[str]]] = None,
                 default_region: Optional[str] = None,
                 restrict_to: Optional[Sequence[str]] = None):
        self.partition = partition
        self.default_region = default_region or DEFAULT_REGIONS.get(partition, 'us-east-1')
        self._overrides: Dict[str, List[str]] = {
            service: list(names) for service, names in (regions or {}).items()
        }
        self._restrict_to = list(restrict_to) if restrict_to else None
        self._session = None
        self._cache: Dict[str, List[str]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Optional[Mapping[str, str]] = None,
                      **kwargs) -> "RegionMetadata":
        return cls(partition=partition_for(settings), **kwargs)

    def for_service(self, service: str) -> List[str]:
        """Regions in which the service's resources may exist"""
        if service in self._overrides:
            return list(self._overrides[service])
        if service in AZURE_LOCATIONS:
            return list(AZURE_LOCATIONS[service])
        if self._restrict_to is not None:
            return list(self._restrict_to)

        with self._lock:
            if service not in self._cache:
                self._cache[service] = self._discover(service)
            return list(self._cache[service])

    def _discover(self, service: str) -> List[str]:
        if self._session is None:
            self._session = boto3.Session()
        service_name = SERVICE_ALIASES.get(service, service)
        regions = self._session.get_available_regions(
            service_name, partition_name=self.partition)
        if not regions:
            logger.debug(f"No endpoint data for {service_name} in {self.partition}, "
                         f"using fallback regions")
            return list(FALLBACK_REGIONS.get(self.partition, [self.default_region]))
        return sorted(regions)


@dataclass(frozen=True)
class AccountIdentity:
    """Account the cache snapshot was collected from"""
    partition: str
    account_id: Optional[str] = None

    @classmethod
    def resolve(cls, resolver: CacheResolver, partition: str,
                region: str) -> "AccountIdentity":
        state = resolver.lookup('sts', 'getCallerIdentity', region)
        account_id = state.data if isinstance(state, Present) else None
        if account_id is None:
            logger.warning(f"Account id not available in cache for {region}")
        return cls(partition=partition, account_id=account_id)

    def arn(self, service: str, region: str, resource: str) -> str:
        return build_arn(self.partition, service, region, self.account_id or '', resource)


def build_arn(partition: str, service: str, region: str, account_id: str,
              resource: str) -> str:
    """Fully qualified resource name"""
    return f"arn:{partition}:{service}:{region}:{account_id}:{resource}"
