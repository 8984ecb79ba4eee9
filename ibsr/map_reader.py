"""Counter records read from the kernel map and the readers that supply them."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True, order=True)
class MapKey:
    """Composite map key: source IPv4 address (host order) and TCP destination port."""

    src_ip: int = 0
    dst_port: int = 0


@dataclass(frozen=True)
class Counters:
    """Raw per-key counter values as stored in the LRU hash map."""

    syn: int = 0
    ack: int = 0
    handshake_ack: int = 0
    """ACKs completing the TCP handshake (ACK set, SYN and RST clear, no payload)."""
    rst: int = 0
    packets: int = 0
    bytes: int = 0


class MapReaderError(Exception):
    """Reading the counter map failed."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"failed to read BPF map: {reason}")
        self.reason = reason


class BpfError(Exception):
    """Base class for failures while loading or attaching the XDP program."""


class LoadError(BpfError):
    """The BPF program could not be loaded."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"failed to load BPF program: {reason}")
        self.reason = reason


class AttachError(BpfError):
    """The XDP program could not be attached to an interface."""

    def __init__(self, interface: str, reason: str) -> None:
        super().__init__(
            f"failed to attach XDP program to interface '{interface}': {reason}"
        )
        self.interface = interface
        self.reason = reason


class InterfaceNotFoundError(BpfError):
    """The named network interface does not exist."""

    def __init__(self, interface: str) -> None:
        super().__init__(f"network interface not found: {interface}")
        self.interface = interface


class InsufficientPermissionsError(BpfError):
    """The process lacks the capabilities needed to load XDP programs."""

    def __init__(self) -> None:
        super().__init__("insufficient permissions (requires CAP_BPF, CAP_NET_ADMIN)")


class MapOperationError(BpfError):
    """An update or lookup on a BPF map failed."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"BPF map operation failed: {reason}")
        self.reason = reason


class MapReader(ABC):
    """Anything that can produce the current counters keyed by (src_ip, dst_port)."""

    @abstractmethod
    def read_counters(self) -> dict[MapKey, Counters]:
        """Return all counters currently in the map.

        Raises MapReaderError if the map cannot be read.
        """


class MockMapReader(MapReader):
    """In-memory map reader holding a fixed set of counters."""

    def __init__(self, counters: Mapping[MapKey, Counters] | None = None) -> None:
        self._counters: dict[MapKey, Counters] = dict(counters or {})

    def add_counter(self, key: MapKey, counters: Counters) -> None:
        """Set the counters for a key, replacing any previous entry."""
        self._counters[key] = counters

    def read_counters(self) -> dict[MapKey, Counters]:
        return dict(self._counters)

    def __repr__(self) -> str:
        return f"MockMapReader(counters={self._counters!r})"