"""
Policy primitives shared by checks: ordinal encryption levels and
regex whitelists
"""

import re
from enum import IntEnum
from typing import Any, Dict, Optional, Pattern


class EncryptionLevel(IntEnum):
    """Encryption strength, weakest first"""
    NONE = 0
    SSE = 1
    AWSKMS = 2
    AWSCMK = 3
    EXTERNALCMK = 4
    CLOUDHSM = 5

    @property
    def token(self) -> str:
        return self.name.lower()

    @classmethod
    def from_token(cls, token: str) -> "EncryptionLevel":
        try:
            return cls[token.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown encryption level: {token!r}") from None

    def __str__(self) -> str:
        return self.token


ENCRYPTION_LEVELS = tuple(level.token for level in EncryptionLevel)

# Managed services encrypt with a provider-managed key unless told otherwise
DEFAULT_ENCRYPTION_LEVEL = EncryptionLevel.AWSKMS


def compare(observed: EncryptionLevel, desired: EncryptionLevel) -> bool:
    """True when the observed level meets or exceeds the desired level"""
    return int(observed) >= int(desired)


def level_from_key_metadata(metadata: Dict[str, Any]) -> EncryptionLevel:
    """Map KMS ``KeyMetadata`` onto an encryption level"""
    origin = metadata.get("Origin")
    if origin == "AWS_KMS":
        manager = metadata.get("KeyManager")
        if manager == "AWS":
            return EncryptionLevel.AWSKMS
        if manager == "CUSTOMER":
            return EncryptionLevel.AWSCMK
    elif origin == "EXTERNAL":
        return EncryptionLevel.EXTERNALCMK
    elif origin == "AWS_CLOUDHSM":
        return EncryptionLevel.CLOUDHSM
    return EncryptionLevel.NONE


def key_id_from_reference(reference: str) -> str:
    """Extract the key id from a key ARN such as ``arn:...:key/<id>``"""
    parts = reference.split("/")
    if len(parts) > 1 and parts[1]:
        return parts[1]
    return reference


class Whitelist:
    """Operator-supplied regular expression exempting matching resources.

    An empty expression means no whitelist is configured. Compilation errors
    surface as ``re.error`` at construction time.
    """

    def __init__(self, expression: Optional[str] = None):
        self.expression = expression or ""
        self._pattern: Optional[Pattern] = re.compile(self.expression) if self.expression else None

    @property
    def configured(self) -> bool:
        return self._pattern is not None

    def matches(self, identifier: Optional[str]) -> bool:
        if self._pattern is None or not identifier:
            return False
        return self._pattern.search(identifier) is not None

    def __repr__(self) -> str:
        return f"Whitelist({self.expression!r})"
