import sys

import pytest

from ibsr.bpf_layout import (
    decode_entries,
    encode_counters,
    encode_map_key,
    parse_counters,
    parse_map_key,
)
from ibsr.map_reader import Counters, MapKey, MapReaderError


def _u32(value: int) -> bytes:
    return value.to_bytes(4, sys.byteorder)


def _u64(value: int) -> bytes:
    return value.to_bytes(8, sys.byteorder)


def _value(syn=0, ack=0, handshake_ack=0, rst=0, packets=0, pad=0, total=0) -> bytes:
    return (
        _u32(syn)
        + _u32(ack)
        + _u32(handshake_ack)
        + _u32(rst)
        + _u32(packets)
        + _u32(pad)
        + _u64(total)
    )


def test_counter_layout_is_32_bytes():
    assert len(encode_counters(Counters())) == 32


def test_parse_counters_all_zeros():
    counters = parse_counters(bytes(32))
    assert counters == Counters(0, 0, 0, 0, 0, 0)


def test_parse_counters_known_values():
    value = _value(syn=100, ack=200, handshake_ack=95, rst=5, packets=305, total=45000)
    counters = parse_counters(value)
    assert counters.syn == 100
    assert counters.ack == 200
    assert counters.handshake_ack == 95
    assert counters.rst == 5
    assert counters.packets == 305
    assert counters.bytes == 45000


def test_parse_counters_bytes_field_large_value():
    value = _value(packets=1_000_000, total=1_000_000_000_000)
    counters = parse_counters(value)
    assert counters.bytes == 1_000_000_000_000
    assert counters.packets == 1_000_000


def test_parse_counters_bytes_max_value():
    counters = parse_counters(_value(total=2**64 - 1))
    assert counters.bytes == 2**64 - 1


@pytest.mark.parametrize("size", [0, 28, 31, 33])
def test_parse_counters_rejects_wrong_size(size):
    with pytest.raises(ValueError):
        parse_counters(bytes(size))


def test_bytes_equals_sum_of_packet_lengths():
    counters = parse_counters(_value(packets=3, total=100 + 1500 + 64))
    assert counters.bytes == 1664
    assert counters.packets == 3


def test_bytes_is_monotonic_increasing():
    cumulative = 0
    seen = []
    for size in (100, 200, 150, 1500, 64):
        cumulative += size
        seen.append(parse_counters(_value(total=cumulative)).bytes)
    assert seen == [100, 300, 450, 1950, 2014]


def test_padding_is_ignored():
    counters = parse_counters(_value(packets=100, pad=0xDEADBEEF, total=5000))
    assert counters.packets == 100
    assert counters.bytes == 5000


def test_encode_counters_round_trip():
    original = Counters(syn=1, ack=2, handshake_ack=3, rst=4, packets=5, bytes=2**64 - 1)
    assert parse_counters(encode_counters(original)) == original


def test_encode_counters_matches_layout():
    original = Counters(syn=100, ack=200, handshake_ack=95, rst=5, packets=305, bytes=45000)
    assert encode_counters(original) == _value(100, 200, 95, 5, 305, 0, 45000)


def test_encode_counters_rejects_overflow():
    with pytest.raises(ValueError):
        encode_counters(Counters(syn=2**32))


def test_parse_map_key_layout():
    raw = bytes([10, 0, 0, 1]) + (8899).to_bytes(2, sys.byteorder) + b"\x00\x00"
    assert parse_map_key(raw) == MapKey(src_ip=0x0A000001, dst_port=8899)


def test_map_key_round_trip():
    key = MapKey(src_ip=0xFFFFFFFF, dst_port=65535)
    encoded = encode_map_key(key)
    assert len(encoded) == 8
    assert parse_map_key(encoded) == key


def test_encode_map_key_src_ip_is_network_order():
    assert encode_map_key(MapKey(src_ip=0x0A000001, dst_port=0))[:4] == b"\x0a\x00\x00\x01"


@pytest.mark.parametrize("size", [4, 7, 9])
def test_parse_map_key_rejects_wrong_size(size):
    with pytest.raises(MapReaderError, match="invalid key size"):
        parse_map_key(bytes(size))


def test_decode_entries_decodes_pairs():
    key = MapKey(src_ip=0x0A000001, dst_port=8899)
    counters = Counters(syn=100, ack=200, handshake_ack=95, rst=5, packets=305, bytes=45000)
    result = decode_entries([(encode_map_key(key), encode_counters(counters))])
    assert result == {key: counters}


def test_decode_entries_accepts_mapping():
    key = MapKey(src_ip=1, dst_port=80)
    result = decode_entries({encode_map_key(key): encode_counters(Counters(syn=7))})
    assert result[key].syn == 7


def test_decode_entries_skips_missing_and_wrong_size_values():
    good = MapKey(src_ip=1, dst_port=80)
    missing = MapKey(src_ip=2, dst_port=80)
    short = MapKey(src_ip=3, dst_port=80)
    result = decode_entries(
        [
            (encode_map_key(good), encode_counters(Counters(rst=1))),
            (encode_map_key(missing), None),
            (encode_map_key(short), bytes(28)),
        ]
    )
    assert list(result) == [good]


def test_decode_entries_rejects_bad_key():
    with pytest.raises(MapReaderError):
        decode_entries([(bytes(4), bytes(32))])


def test_decode_entries_empty():
    assert decode_entries([]) == {}