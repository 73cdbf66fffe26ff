"""
Per-check option schema and resolved configuration
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from .exceptions import ConfigurationError
from .policy import Whitelist

TRUTHY = frozenset(["1", "true", "yes", "on"])


@dataclass(frozen=True)
class RuleOption:
    """One setting a check recognizes"""
    name: str
    title: str
    description: str
    default: str = ""
    regex: Optional[str] = None
    pattern: bool = False  # value is itself a whitelist expression


class RuleConfig:
    """Immutable option values for one check invocation"""

    def __init__(self, values: Mapping[str, str], whitelists: Mapping[str, Whitelist]):
        self._values = MappingProxyType(dict(values))
        self._whitelists = MappingProxyType(dict(whitelists))

    @property
    def values(self) -> Mapping[str, str]:
        return self._values

    def __getitem__(self, name: str) -> str:
        return self._values[name]

    def __contains__(self, name: str) -> bool:
        return name in self._values

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self._values.get(name, default)

    def whitelist(self, name: str) -> Whitelist:
        return self._whitelists.get(name) or Whitelist()

    def __repr__(self) -> str:
        return f"RuleConfig({dict(self._values)!r})"


def resolve_config(check_id: str, options: Iterable[RuleOption],
                   settings: Optional[Mapping[str, str]] = None) -> RuleConfig:
    """Merge caller settings over declared defaults and validate them"""
    settings = settings or {}
    values: Dict[str, str] = {}
    whitelists: Dict[str, Whitelist] = {}

    for option in options:
        raw = settings.get(option.name)
        value = option.default if raw is None or raw == "" else str(raw)

        if option.regex and not re.search(option.regex, value):
            raise ConfigurationError(
                check_id, option.name, f"{value!r} does not match {option.regex}")

        if option.pattern:
            try:
                whitelists[option.name] = Whitelist(value)
            except re.error as e:
                raise ConfigurationError(
                    check_id, option.name, f"invalid regular expression {value!r}: {e}") from e

        values[option.name] = value

    return RuleConfig(values, whitelists)


def setting_enabled(settings: Optional[Mapping[str, str]], name: str) -> bool:
    """Interpret a flag-style setting such as ``govcloud``"""
    if not settings:
        return False
    value = settings.get(name)
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in TRUTHY
