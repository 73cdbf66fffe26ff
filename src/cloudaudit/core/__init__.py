"""Core framework components for cloudaudit"""

from .cache import CacheResolver, CacheSnapshot, CacheEntry, Absent, Errored, Present
from .engine import ScanEngine, ScanReport
from .executor import RegionExecutor
from .framework import (CheckContext, CheckResult, Finding, FindingAggregator,
                        FindingStatus, RegionalCheck, SecurityCheck)
from .output import OutputEngine
from .policy import EncryptionLevel, Whitelist, compare
from .provider import AccountIdentity, RegionMetadata
from .registry import CheckRegistry
from .settings import RuleConfig, RuleOption

__all__ = [
    "Absent",
    "AccountIdentity",
    "CacheEntry",
    "CacheResolver",
    "CacheSnapshot",
    "CheckContext",
    "CheckRegistry",
    "CheckResult",
    "EncryptionLevel",
    "Errored",
    "Finding",
    "FindingAggregator",
    "FindingStatus",
    "OutputEngine",
    "Present",
    "RegionExecutor",
    "RegionMetadata",
    "RegionalCheck",
    "RuleConfig",
    "RuleOption",
    "ScanEngine",
    "ScanReport",
    "SecurityCheck",
    "Whitelist",
    "compare",
]
