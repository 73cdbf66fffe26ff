"""
Registry for managing security checks
"""

from typing import Dict, List, Optional

from .exceptions import UnknownCheckError
from .framework import SecurityCheck


class CheckRegistry:
    """Registry for managing security checks"""

    def __init__(self, register_defaults: bool = True):
        self.checks: Dict[str, SecurityCheck] = {}
        if register_defaults:
            self._register_default_checks()

    def _register_default_checks(self):
        """Register default security checks"""
        from ..checks.cloudtrail import CloudTrailBucketAccessLoggingCheck
        from ..checks.connect import ConnectVoiceIdDomainEncryptedCheck
        from ..checks.defender import DefenderAppServiceEnabledCheck
        from ..checks.ec2 import EC2LaunchWizardSecurityGroupsCheck, EC2MultipleSubnetsCheck
        from ..checks.elasticache import ElastiCacheReservedNodePaymentFailedCheck
        from ..checks.s3 import S3BucketHasTagsCheck

        default_checks = [
            CloudTrailBucketAccessLoggingCheck(),
            ConnectVoiceIdDomainEncryptedCheck(),
            DefenderAppServiceEnabledCheck(),
            EC2LaunchWizardSecurityGroupsCheck(),
            EC2MultipleSubnetsCheck(),
            ElastiCacheReservedNodePaymentFailedCheck(),
            S3BucketHasTagsCheck(),
        ]

        for check in default_checks:
            self.register_check(check)

    def register_check(self, check: SecurityCheck):
        """Register a security check"""
        if not check.check_id:
            raise ValueError(f"{type(check).__name__} has no check_id")
        if check.check_id in self.checks:
            raise ValueError(f"Duplicate check id registered: {check.check_id}")
        self.checks[check.check_id] = check

    def get_check(self, check_id: str) -> Optional[SecurityCheck]:
        """Get a specific check by ID"""
        return self.checks.get(check_id)

    def get_check_strict(self, check_id: str) -> SecurityCheck:
        check = self.checks.get(check_id)
        if check is None:
            raise UnknownCheckError(check_id)
        return check

    def get_checks_by_category(self, category: str) -> List[SecurityCheck]:
        """Get all checks for a specific category"""
        return [check for check in self.checks.values()
                if check.category.lower() == category.lower()]

    def get_all_checks(self) -> List[SecurityCheck]:
        """Get all registered checks"""
        return list(self.checks.values())

    def list_checks(self) -> Dict[str, str]:
        """List all available checks"""
        return {check_id: check.check_title
                for check_id, check in self.checks.items()}
