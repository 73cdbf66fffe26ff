"""
Core framework classes and interfaces for security checks
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .cache import CacheResolver, CacheSnapshot, CacheState, Errored, Present
from .executor import DEFAULT_MAX_WORKERS, RegionExecutor
from .provider import AccountIdentity, RegionMetadata, partition_for
from .settings import RuleConfig, RuleOption, resolve_config


class FindingStatus(IntEnum):
    """Outcome of one assessment, ordered by severity code"""
    PASSING = 0
    WARNING = 1
    FAILING = 2
    UNKNOWN = 3

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    FindingStatus.PASSING: "PASS",
    FindingStatus.WARNING: "WARN",
    FindingStatus.FAILING: "FAIL",
    FindingStatus.UNKNOWN: "UNKNOWN",
}


@dataclass(frozen=True)
class Finding:
    """Security finding data structure"""
    status: FindingStatus
    message: str
    region: Optional[str] = None
    resource_id: Optional[str] = None
    check_id: str = ""

    def __post_init__(self):
        if not self.message or not self.message.strip():
            raise ValueError("Finding message must not be empty")
        object.__setattr__(self, "status", FindingStatus(self.status))

    def to_dict(self) -> Dict[str, Any]:
        """Convert finding to dictionary for JSON output"""
        return {
            "check_id": self.check_id,
            "status": self.status.label,
            "status_code": int(self.status),
            "message": self.message,
            "region": self.region,
            "resource_id": self.resource_id,
        }


class FindingAggregator:
    """Ordered, append-only findings of one check invocation.

    Appends from concurrent region tasks are serialized; findings from one
    region keep the order in which that region emitted them.
    """

    def __init__(self, check_id: str = ""):
        self.check_id = check_id
        self._findings: List[Finding] = []
        self._lock = threading.Lock()
        self._frozen = False

    def append(self, finding: Finding):
        with self._lock:
            if self._frozen:
                raise RuntimeError(f"Findings for {self.check_id} are already final")
            self._findings.append(finding)

    def add_result(self, status: FindingStatus, message: str,
                   region: Optional[str] = None,
                   resource_id: Optional[str] = None) -> Finding:
        finding = Finding(status=status, message=message, region=region,
                          resource_id=resource_id, check_id=self.check_id)
        self.append(finding)
        return finding

    def findings(self) -> Tuple[Finding, ...]:
        with self._lock:
            return tuple(self._findings)

    def for_region(self, region: Optional[str]) -> Tuple[Finding, ...]:
        return tuple(f for f in self.findings() if f.region == region)

    def freeze(self) -> Tuple[Finding, ...]:
        with self._lock:
            self._frozen = True
            return tuple(self._findings)

    def __len__(self) -> int:
        with self._lock:
            return len(self._findings)

    def __iter__(self) -> Iterator[Finding]:
        return iter(self.findings())


@dataclass(frozen=True)
class CheckResult:
    """Completed findings of one check plus the cache entries it read"""
    check_id: str
    findings: Tuple[Finding, ...]
    source: Dict[str, Any] = field(default_factory=dict)

    def by_status(self, status: FindingStatus) -> Tuple[Finding, ...]:
        return tuple(f for f in self.findings if f.status == status)


class CheckContext:
    """Everything a check needs during one invocation"""

    def __init__(self, check_id: str, cache: CacheSnapshot, config: RuleConfig,
                 regions: RegionMetadata, executor: RegionExecutor):
        self.check_id = check_id
        self.config = config
        self.regions = regions
        self.executor = executor
        self.resolver = CacheResolver(cache)
        self.findings = FindingAggregator(check_id)
        self._identity: Optional[AccountIdentity] = None
        self._identity_lock = threading.Lock()

    @property
    def partition(self) -> str:
        return self.regions.partition

    @property
    def default_region(self) -> str:
        return self.regions.default_region

    @property
    def identity(self) -> AccountIdentity:
        with self._identity_lock:
            if self._identity is None:
                self._identity = AccountIdentity.resolve(
                    self.resolver, self.partition, self.default_region)
            return self._identity

    def lookup(self, service: str, operation: str, region: str,
               resource_key: Optional[str] = None) -> CacheState:
        return self.resolver.lookup(service, operation, region, resource_key)

    def add_result(self, status: FindingStatus, message: str,
                   region: Optional[str] = None,
                   resource_id: Optional[str] = None) -> Finding:
        return self.findings.add_result(status, message, region, resource_id)


class SecurityCheck(ABC):
    """Abstract base class for security checks.

    Subclasses describe themselves through class attributes and implement
    ``execute``. ``run`` is the public entry point: it resolves options,
    executes the check and returns the completed findings.
    """

    check_id: str = ""
    check_title: str = ""
    category: str = ""
    description: str = ""
    apis: Sequence[str] = ()
    options: Sequence[RuleOption] = ()

    def __init__(self):
        self.logger = logging.getLogger(f"cloudaudit.checks.{self.__class__.__name__}")

    @abstractmethod
    def execute(self, context: CheckContext):
        """Evaluate the cache and record findings on the context"""
        pass

    def run(self, cache: CacheSnapshot, settings: Optional[Mapping[str, str]] = None,
            regions: Optional[RegionMetadata] = None,
            max_workers: int = DEFAULT_MAX_WORKERS,
            parallel: bool = True) -> CheckResult:
        """Run the check against a cache snapshot.

        Raises ``ConfigurationError`` before any evaluation when an option
        value is invalid.
        """
        config = resolve_config(self.check_id, self.options, settings)
        if regions is None:
            regions = RegionMetadata(partition=partition_for(settings))

        context = CheckContext(self.check_id, cache, config, regions,
                               RegionExecutor(max_workers, parallel))
        try:
            self.execute(context)
        except Exception as e:
            self.logger.exception(f"{self.check_id} failed outside region evaluation")
            context.add_result(FindingStatus.UNKNOWN, f"Unexpected error evaluating check: {e}")

        findings = context.findings.freeze()
        self.logger.debug(f"{self.check_id} produced {len(findings)} findings")
        return CheckResult(self.check_id, findings, context.resolver.source)

    def fan_out(self, context: CheckContext, regions: Sequence[str], evaluate):
        """Evaluate every region, turning a crashed region into an Unknown finding"""

        def on_error(region: str, exc: BaseException):
            self.logger.error(f"{self.check_id} failed in {region}: {exc}",
                              exc_info=(type(exc), exc, exc.__traceback__))
            context.add_result(FindingStatus.UNKNOWN,
                               f"Unexpected error evaluating region: {exc}", region)

        context.executor.run(regions, evaluate, on_error)

    def describe(self) -> Dict[str, Any]:
        return {
            "check_id": self.check_id,
            "title": self.check_title,
            "category": self.category,
            "description": self.description,
            "apis": list(self.apis),
            "options": [option.name for option in self.options],
        }


class RegionalCheck(SecurityCheck):
    """Check that lists one resource type per region and judges each resource.

    Subclasses set ``service`` (whose region list applies), ``listing`` (the
    ``(service, operation)`` holding the per-region resource list) and
    ``resource_label``; then implement ``evaluate_resource``. Setting
    ``whitelist_option`` to a pattern option name enables whitelisting by
    ``resource_name``.
    """

    service: str = ""
    listing: Tuple[str, str] = ("", "")
    resource_label: str = "resources"
    resource_kind: str = "Resource"
    whitelist_option: Optional[str] = None

    def execute(self, context: CheckContext):
        regions = context.regions.for_service(self.service)
        self.fan_out(context, regions, lambda region: self.evaluate_region(context, region))

    def evaluate_region(self, context: CheckContext, region: str):
        state = context.lookup(self.listing[0], self.listing[1], region)
        if not self.region_ready(context, state, region):
            return
        self.evaluate_resources(context, region, state.data)

    def region_ready(self, context: CheckContext, state: CacheState, region: str) -> bool:
        """Apply the absent / errored / empty rules to a region listing"""
        if isinstance(state, Errored):
            context.add_result(FindingStatus.UNKNOWN,
                               f"Unable to query for {self.resource_label}: {state.message}",
                               region)
            return False
        if not isinstance(state, Present):
            return False
        if not state.data:
            context.add_result(FindingStatus.PASSING,
                               f"No {self.resource_label} found", region)
            return False
        return True

    def evaluate_resources(self, context: CheckContext, region: str, resources: List[Any]):
        whitelist = (context.config.whitelist(self.whitelist_option)
                     if self.whitelist_option else None)

        for resource in resources:
            try:
                if whitelist is not None and whitelist.matches(self.resource_name(resource)):
                    context.add_result(FindingStatus.PASSING,
                                       f"{self.resource_kind} has been whitelisted",
                                       region, self.resource_arn(context, region, resource))
                    continue
                self.evaluate_resource(context, region, resource)
            except Exception as e:
                self.logger.exception(f"{self.check_id} failed on a resource in {region}")
                context.add_result(FindingStatus.UNKNOWN,
                                   f"Unexpected error evaluating resource: {e}",
                                   region)

    def resource_name(self, resource: Any) -> Optional[str]:
        """Identifier the whitelist is matched against"""
        return None

    def resource_arn(self, context: CheckContext, region: str, resource: Any) -> Optional[str]:
        return None

    def evaluate_resource(self, context: CheckContext, region: str, resource: Any):
        """Judge one resource and record its finding"""
        raise NotImplementedError
