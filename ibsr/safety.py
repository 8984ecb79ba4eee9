"""Source-level checks that an XDP program cannot drop, redirect or emit per-packet events."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

FORBIDDEN_XDP_ACTIONS: tuple[str, ...] = (
    "XDP_DROP",
    "XDP_ABORTED",
    "XDP_REDIRECT",
    "XDP_TX",
)
"""XDP return actions that would affect packet flow."""

FORBIDDEN_BPF_HELPERS: tuple[str, ...] = (
    "bpf_redirect",
    "bpf_redirect_map",
    "bpf_xdp_redirect_map",
    "bpf_perf_event_output",
    "bpf_ringbuf_output",
    "bpf_ringbuf_reserve",
    "bpf_ringbuf_submit",
)
"""BPF helpers that could emit events or redirect packets."""

FORBIDDEN_MAP_TYPES: tuple[str, ...] = (
    "BPF_MAP_TYPE_DEVMAP",
    "BPF_MAP_TYPE_DEVMAP_HASH",
    "BPF_MAP_TYPE_XSKMAP",
    "BPF_MAP_TYPE_CPUMAP",
    "BPF_MAP_TYPE_PERF_EVENT_ARRAY",
    "BPF_MAP_TYPE_RINGBUF",
)
"""Map types that could be used for redirection or event output."""

REQUIRED_MAP_TYPE = "BPF_MAP_TYPE_LRU_HASH"
"""Map type required for bounded memory use."""

_ACTION_PATTERNS = tuple(
    (action, re.compile(rf"\breturn\s+{re.escape(action)}\b"))
    for action in FORBIDDEN_XDP_ACTIONS
)
_HELPER_PATTERNS = tuple(
    (helper, re.compile(rf"\b{re.escape(helper)}\s*\("))
    for helper in FORBIDDEN_BPF_HELPERS
)


class SafetyError(Exception):
    """Base class for safety verification failures."""


class ForbiddenActionError(SafetyError):
    """A forbidden XDP return action was found."""

    def __init__(self, name: str) -> None:
        super().__init__(f"forbidden XDP action found: {name}")
        self.name = name


class ForbiddenHelperError(SafetyError):
    """A forbidden BPF helper call was found."""

    def __init__(self, name: str) -> None:
        super().__init__(f"forbidden BPF helper found: {name}")
        self.name = name


class ForbiddenMapTypeError(SafetyError):
    """A forbidden BPF map type was found."""

    def __init__(self, name: str) -> None:
        super().__init__(f"forbidden map type found: {name}")
        self.name = name


class MissingLruMapError(SafetyError):
    """The required LRU hash map was not found."""

    def __init__(self) -> None:
        super().__init__("required LRU map type not found")


class ElfError(SafetyError):
    """The compiled object could not be parsed as ELF."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"ELF parsing error: {reason}")
        self.reason = reason


@dataclass
class SafetyReport:
    """Findings of a safety analysis."""

    forbidden_actions: list[str] = field(default_factory=list)
    forbidden_helpers: list[str] = field(default_factory=list)
    forbidden_map_types: list[str] = field(default_factory=list)
    has_lru_map: bool = False
    is_safe: bool = False

    def validate(self) -> None:
        """Raise the first applicable SafetyError; return None if all requirements pass."""
        if self.forbidden_actions:
            raise ForbiddenActionError(self.forbidden_actions[0])
        if self.forbidden_helpers:
            raise ForbiddenHelperError(self.forbidden_helpers[0])
        if self.forbidden_map_types:
            raise ForbiddenMapTypeError(self.forbidden_map_types[0])
        if not self.has_lru_map:
            raise MissingLruMapError()


def analyze_source(source: str) -> SafetyReport:
    """Scan C source of an XDP program for forbidden patterns."""
    report = SafetyReport(
        forbidden_actions=[
            action for action, pattern in _ACTION_PATTERNS if pattern.search(source)
        ],
        forbidden_helpers=[
            helper for helper, pattern in _HELPER_PATTERNS if pattern.search(source)
        ],
        forbidden_map_types=[
            map_type for map_type in FORBIDDEN_MAP_TYPES if map_type in source
        ],
        has_lru_map=REQUIRED_MAP_TYPE in source,
    )
    report.is_safe = (
        not report.forbidden_actions
        and not report.forbidden_helpers
        and not report.forbidden_map_types
        and report.has_lru_map
    )
    return report