"""
Exceptions raised by the audit framework
"""


class CloudAuditError(Exception):
    """Base exception for all cloudaudit errors"""


class ConfigurationError(CloudAuditError):
    """Raised when a check option value is invalid.

    Covers values that do not match the option's declared constraint and
    whitelist expressions that do not compile. Detected once per check
    invocation, before any region work is dispatched.
    """

    def __init__(self, check_id: str, option: str, message: str):
        super().__init__(f"{check_id}: invalid value for '{option}': {message}")
        self.check_id = check_id
        self.option = option


class CacheLoadError(CloudAuditError):
    """Raised when a cache snapshot cannot be read or parsed"""


class UnknownCheckError(CloudAuditError):
    """Raised when a check id is not present in the registry"""

    def __init__(self, check_id: str):
        super().__init__(f"Unknown check: {check_id}")
        self.check_id = check_id
