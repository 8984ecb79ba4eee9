# ibsr

Building blocks for an inbound traffic monitor that counts TCP packets per
source address and destination port with a read-only XDP program. Everything
here runs without kernel access and without third-party dependencies.

## Modules

- **`ibsr.clock`**: the `Clock` interface (`now_unix_sec()`), with
  `SystemClock` (wall-clock time), `MockClock` (always the same timestamp) and
  `AdvancingClock` (returns its timestamp, then moves it forward by a fixed
  increment). `format_timestamp_for_dirname(ts)` formats a Unix timestamp as a
  UTC `YYYYMMDD-HHMMSSZ` string, for example `20240101-000000Z`. Its helpers
  `days_to_ymd` and `is_leap_year` are public too.
- **`ibsr.map_reader`**: the frozen records `MapKey(src_ip, dst_port)` and
  `Counters(syn, ack, handshake_ack, rst, packets, bytes)`, the `MapReader`
  interface (`read_counters()` returns a `dict[MapKey, Counters]`), and the
  in-memory `MockMapReader` (`add_counter(key, counters)` replaces any earlier
  entry for that key). It also defines `MapReaderError` and the `BpfError`
  family: `LoadError`, `AttachError`, `InterfaceNotFoundError`,
  `InsufficientPermissionsError` and `MapOperationError`.
- **`ibsr.bpf_layout`**: the binary layout of the counter map.
  Keys are 8 bytes (`MAP_KEY_SIZE`): source IP in network order, destination
  port in native order, two padding bytes. Values are 32 bytes
  (`COUNTERS_SIZE`): five native-order u32 counters, four padding bytes and
  a u64 byte count.
  `parse_map_key` / `encode_map_key` and `parse_counters` / `encode_counters`
  convert in both directions. `parse_map_key` raises `MapReaderError` on a
  wrongly sized key, and `parse_counters` raises `ValueError` on a wrongly
  sized value. `decode_entries` takes a mapping or an iterable of raw
  `(key, value)` pairs. It skips entries whose value is missing or wrongly
  sized.
- **`ibsr.safety`**: `analyze_source(source)` scans XDP C source. It looks for
  forbidden `return` actions (`XDP_DROP`, `XDP_ABORTED`, `XDP_REDIRECT`,
  `XDP_TX`), forbidden helper calls such as `bpf_redirect` or
  `bpf_ringbuf_output`, and forbidden map types such as
  `BPF_MAP_TYPE_RINGBUF`. It also checks that `BPF_MAP_TYPE_LRU_HASH` is used.
  The result is a `SafetyReport`. `SafetyReport.validate()` raises the first
  applicable `SafetyError` subclass: `ForbiddenActionError`,
  `ForbiddenHelperError`, `ForbiddenMapTypeError` or `MissingLruMapError`.
- **`ibsr.elf_scan`**: `ElfObject.parse(data)` is a small reader for ELF32 and
  ELF64 objects in either byte order. It exposes `sections()` (as
  `ElfSection` records) and `symbol_names()`. `analyze_elf(elf_bytes)` looks
  for forbidden helper symbols, and it scans the sections whose names contain
  `maps` or `.rodata` for map type names. Malformed input raises `ElfError`
  (defined in `ibsr.safety`). Return actions are not detected at this level.
  The LRU map is reported in `has_lru_map`, but `is_safe` does not require it.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

```python
from ibsr.clock import MockClock, format_timestamp_for_dirname
from ibsr.map_reader import Counters, MapKey, MockMapReader

clock = MockClock(1704067200)
print(format_timestamp_for_dirname(clock.now_unix_sec()))  # 20240101-000000Z

reader = MockMapReader()
reader.add_counter(MapKey(src_ip=0x0A000001, dst_port=8899), Counters(syn=10))
print(reader.read_counters())
```

Decode raw map contents:

```python
from ibsr.bpf_layout import decode_entries, encode_counters, encode_map_key
from ibsr.map_reader import Counters, MapKey

raw = {encode_map_key(MapKey(0x0A000001, 443)): encode_counters(Counters(packets=3, bytes=1664))}
print(decode_entries(raw))
```

Check an XDP program before loading it:

```python
from pathlib import Path
from ibsr.safety import SafetyError, analyze_source
from ibsr.elf_scan import analyze_elf

report = analyze_source(Path("counter.bpf.c").read_text())
try:
    report.validate()
except SafetyError as exc:
    print(f"unsafe program: {exc}")

elf_report = analyze_elf(Path("counter.bpf.o").read_bytes())
print(elf_report.is_safe, elf_report.forbidden_helpers)
```

## What this package does not do

It does not load an XDP program, attach it to an interface or read a live BPF
map. The `BpfError` classes describe those failures, but nothing in the
package raises them. `MockMapReader` is the only `MapReader` provided. The
package does not turn counters into snapshots, does not write them to disk,
and provides no command-line tool.