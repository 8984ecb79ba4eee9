"""Binary layout of the kernel counter map's keys and values.

Key (8 bytes): src_ip (u32, network order) + dst_port (u16, native order) + 2 pad.
Value (32 bytes, native order): syn, ack, handshake_ack, rst, packets (u32 each),
4 bytes of padding for the 8-byte alignment of bytes (u64).
"""

from __future__ import annotations

import struct
from typing import Iterable, Mapping, Optional, Tuple, Union

from ibsr.map_reader import Counters, MapKey, MapReaderError

_COUNTERS = struct.Struct("=IIIII4xQ")
_SRC_IP = struct.Struct(">I")
_DST_PORT = struct.Struct("=H")

COUNTERS_SIZE = _COUNTERS.size
MAP_KEY_SIZE = _SRC_IP.size + _DST_PORT.size + 2

RawEntries = Union[
    Mapping[bytes, Optional[bytes]],
    Iterable[Tuple[bytes, Optional[bytes]]],
]


def parse_counters(value: bytes) -> Counters:
    """Decode a 32-byte map value; the padding bytes are ignored.

    Raises ValueError if the value is not exactly 32 bytes long.
    """
    if len(value) != COUNTERS_SIZE:
        raise ValueError(
            f"counter value must be {COUNTERS_SIZE} bytes, got {len(value)}"
        )
    syn, ack, handshake_ack, rst, packets, total_bytes = _COUNTERS.unpack(value)
    return Counters(
        syn=syn,
        ack=ack,
        handshake_ack=handshake_ack,
        rst=rst,
        packets=packets,
        bytes=total_bytes,
    )


def encode_counters(counters: Counters) -> bytes:
    """Encode counters into the 32-byte map value layout with zeroed padding."""
    try:
        return _COUNTERS.pack(
            counters.syn,
            counters.ack,
            counters.handshake_ack,
            counters.rst,
            counters.packets,
            counters.bytes,
        )
    except struct.error as exc:
        raise ValueError(f"counter value out of range: {exc}") from exc


def parse_map_key(key: bytes) -> MapKey:
    """Decode an 8-byte map key.

    Raises MapReaderError if the key is not exactly 8 bytes long.
    """
    if len(key) != MAP_KEY_SIZE:
        raise MapReaderError("invalid key size")
    (src_ip,) = _SRC_IP.unpack_from(key, 0)
    (dst_port,) = _DST_PORT.unpack_from(key, _SRC_IP.size)
    return MapKey(src_ip=src_ip, dst_port=dst_port)


def encode_map_key(key: MapKey) -> bytes:
    """Encode a map key into its 8-byte layout with zeroed padding."""
    try:
        return _SRC_IP.pack(key.src_ip) + _DST_PORT.pack(key.dst_port) + b"\x00\x00"
    except struct.error as exc:
        raise ValueError(f"map key out of range: {exc}") from exc


def decode_entries(entries: RawEntries) -> dict[MapKey, Counters]:
    """Decode raw (key, value) pairs read from the counter map.

    Entries whose value is missing or not 32 bytes long are skipped; a key of
    the wrong size raises MapReaderError.
    """
    pairs = entries.items() if isinstance(entries, Mapping) else entries
    result: dict[MapKey, Counters] = {}
    for raw_key, raw_value in pairs:
        map_key = parse_map_key(raw_key)
        if raw_value is None or len(raw_value) != COUNTERS_SIZE:
            continue
        result[map_key] = parse_counters(raw_value)
    return result