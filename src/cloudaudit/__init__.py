"""
cloudaudit - rule execution framework for cloud configuration audits

Checks read previously collected provider API responses from a cache
snapshot and report normalized pass/warn/fail/unknown findings.
"""

__version__ = "1.0.0"

from .core.cache import CacheSnapshot
from .core.engine import ScanEngine
from .core.framework import Finding, FindingStatus, SecurityCheck
from .core.output import OutputEngine
from .core.provider import RegionMetadata
from .core.registry import CheckRegistry

__all__ = [
    "CacheSnapshot",
    "CheckRegistry",
    "Finding",
    "FindingStatus",
    "OutputEngine",
    "RegionMetadata",
    "ScanEngine",
    "SecurityCheck",
]
