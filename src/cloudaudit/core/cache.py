"""
Read-only access to collected provider API responses.

The collector stores one entry per API call coordinate:

    {service: {operation: {region: {"err": ..., "data": ...}}}}

Per-resource calls nest one more level keyed by the resource key:

    {service: {operation: {region: {resource_key: {"err": ..., "data": ...}}}}}

Checks never touch that document directly. They go through a
``CacheResolver``, which answers every lookup with one of three states:
``Absent`` (not collected yet), ``Errored`` (collected with an error) or
``Present`` (collected with data of the expected shape).
"""

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from .exceptions import CacheLoadError

logger = logging.getLogger(__name__)

GLOBAL_REGION = "global"
DEFAULT_ERROR_TEXT = "Unable to obtain data"

_ENTRY_KEYS = frozenset(["err", "data"])

Coordinate = Tuple[str, str, str, Optional[str]]


@dataclass(frozen=True)
class CacheEntry:
    """One collected (or failed) API call result"""
    service: str
    operation: str
    region: str
    resource_key: Optional[str] = None
    error: Any = None
    data: Any = None

    @property
    def coordinate(self) -> Coordinate:
        return (self.service, self.operation, self.region, self.resource_key)

    def to_dict(self) -> Dict[str, Any]:
        return {"err": self.error, "data": self.data}


@dataclass(frozen=True)
class Absent:
    """Nothing has been collected for the coordinate yet"""

    present = False
    errored = False


@dataclass(frozen=True)
class Errored:
    """The collector recorded an error for the coordinate"""
    message: str

    present = False
    errored = True


@dataclass(frozen=True)
class Present:
    """The collector recorded data for the coordinate"""
    data: Any

    present = True
    errored = False


ABSENT = Absent()

CacheState = Union[Absent, Errored, Present]


def describe_error(error: Any) -> str:
    """Render a collector error as text.

    Strings are used verbatim. Provider error mappings contribute their
    ``message`` or, failing that, their ``code``.
    """
    if not error:
        return DEFAULT_ERROR_TEXT
    if isinstance(error, str):
        return error
    if isinstance(error, dict):
        return str(error.get("message") or error.get("code") or DEFAULT_ERROR_TEXT)
    message = getattr(error, "message", None) or getattr(error, "code", None)
    if message:
        return str(message)
    return DEFAULT_ERROR_TEXT


def state_error(state: CacheState) -> str:
    """Error text for a state that cannot be evaluated"""
    if isinstance(state, Errored):
        return state.message
    return DEFAULT_ERROR_TEXT


@dataclass(frozen=True)
class PayloadShape:
    """Expected payload shape for one (service, operation) pair"""
    kind: type
    required_key: Optional[str] = None
    keyed: bool = False  # entries nest one level deeper, by resource key

    def violation(self, data: Any) -> Optional[str]:
        if not isinstance(data, self.kind):
            return f"expected {self.kind.__name__}, got {type(data).__name__}"
        if self.required_key and self.required_key not in data:
            return f"missing '{self.required_key}'"
        return None


LIST = PayloadShape(list)

PAYLOAD_SHAPES: Dict[Tuple[str, str], PayloadShape] = {
    ("cloudtrail", "describeTrails"): LIST,
    ("ec2", "describeSecurityGroups"): LIST,
    ("ec2", "describeSubnets"): PayloadShape(dict, "Subnets", keyed=True),
    ("ec2", "describeVpcs"): LIST,
    ("elasticache", "describeReservedCacheNodes"): LIST,
    ("kms", "describeKey"): PayloadShape(dict, "KeyMetadata", keyed=True),
    ("kms", "listKeys"): LIST,
    ("pricings", "list"): LIST,
    ("resourcegroupstaggingapi", "getResources"): LIST,
    ("s3", "getBucketLogging"): PayloadShape(dict, keyed=True),
    ("s3", "listBuckets"): LIST,
    ("sts", "getCallerIdentity"): PayloadShape(str),
    ("voiceid", "listDomains"): LIST,
}


def _is_entry(node: Any) -> bool:
    return isinstance(node, dict) and bool(node) and set(node) <= _ENTRY_KEYS


def _is_resource_keyed(service: str, operation: str, node: Any) -> bool:
    """Whether a region node maps resource keys to entries.

    Declared operations decide by their shape. For undeclared ones a node
    whose values are all entries is keyed, even when a resource key is
    literally ``err`` or ``data``.
    """
    shape = PAYLOAD_SHAPES.get((service, operation))
    if shape is not None:
        return shape.keyed
    if not _is_entry(node):
        return True
    return all(_is_entry(value) for value in node.values())


class CacheSnapshot:
    """Immutable set of collected API responses"""

    def __init__(self, entries=()):
        self._entries: Dict[Coordinate, CacheEntry] = {}
        for entry in entries:
            self._entries[entry.coordinate] = entry

    @classmethod
    def from_dict(cls, document: Dict[str, Any]) -> "CacheSnapshot":
        """Build a snapshot from the collector's nested document"""
        if not isinstance(document, dict):
            raise CacheLoadError(
                f"Cache document must be an object, got {type(document).__name__}")

        entries = []
        for service, operations in document.items():
            if not isinstance(operations, dict):
                raise CacheLoadError(f"Malformed cache section for service '{service}'")
            for operation, regions in operations.items():
                if not isinstance(regions, dict):
                    raise CacheLoadError(f"Malformed cache section for {service}:{operation}")
                for region, node in regions.items():
                    if not isinstance(node, dict):
                        raise CacheLoadError(
                            f"Malformed cache entry for {service}:{operation}:{region}")
                    if not _is_resource_keyed(service, operation, node):
                        if not set(node) <= _ENTRY_KEYS:
                            raise CacheLoadError(
                                f"Malformed cache entry for {service}:{operation}:{region}")
                        entries.append(CacheEntry(
                            service, operation, region,
                            error=node.get("err"), data=node.get("data")))
                        continue
                    for resource_key, leaf in node.items():
                        if not isinstance(leaf, dict):
                            raise CacheLoadError(
                                f"Malformed cache entry for "
                                f"{service}:{operation}:{region}:{resource_key}")
                        entries.append(CacheEntry(
                            service, operation, region, resource_key,
                            error=leaf.get("err"), data=leaf.get("data")))

        logger.debug(f"Loaded cache snapshot with {len(entries)} entries")
        return cls(entries)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "CacheSnapshot":
        """Load a snapshot written by the collector"""
        try:
            with open(path, "r", encoding="utf-8") as fh:
                document = json.load(fh)
        except OSError as e:
            raise CacheLoadError(f"Unable to read cache file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise CacheLoadError(
                f"Invalid JSON in {path}: {e.msg} (line {e.lineno} column {e.colno})") from e
        return cls.from_dict(document)

    def get(self, service: str, operation: str, region: str,
            resource_key: Optional[str] = None) -> Optional[CacheEntry]:
        return self._entries.get((service, operation, region, resource_key))

    def __iter__(self) -> Iterator[CacheEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


class CacheResolver:
    """Typed lookups into a snapshot on behalf of one check invocation.

    Every coordinate looked up is recorded in ``source`` so the caller can see
    which part of the cache the check relied on.
    """

    def __init__(self, snapshot: CacheSnapshot):
        self.snapshot = snapshot
        self._source: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def lookup(self, service: str, operation: str, region: str,
               resource_key: Optional[str] = None) -> CacheState:
        entry = self.snapshot.get(service, operation, region, resource_key)
        self._record(service, operation, region, resource_key, entry)

        if entry is None:
            return ABSENT
        if entry.error or entry.data is None:
            return Errored(describe_error(entry.error))

        shape = PAYLOAD_SHAPES.get((service, operation))
        if shape is not None:
            problem = shape.violation(entry.data)
            if problem:
                return Errored(f"Unexpected {service}:{operation} payload: {problem}")
        return Present(entry.data)

    def _record(self, service, operation, region, resource_key, entry):
        with self._lock:
            regions = self._source.setdefault(service, {}).setdefault(operation, {})
            value = entry.to_dict() if entry is not None else None
            if resource_key is None:
                regions[region] = value
            else:
                if not isinstance(regions.get(region), dict):
                    regions[region] = {}
                regions[region][resource_key] = value

    @property
    def source(self) -> Dict[str, Any]:
        """Copy of the touched portion of the cache, in the collector's layout"""
        with self._lock:
            return json.loads(json.dumps(self._source, default=str))
