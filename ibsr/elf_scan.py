"""ELF-level safety checks for compiled XDP objects.

A small reader for ELF32/ELF64 objects (either byte order) that exposes the
section table and symbol names, plus the analysis that looks for forbidden
helper symbols and map types in the compiled program.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterable, Optional

from ibsr.safety import (
    FORBIDDEN_BPF_HELPERS,
    FORBIDDEN_MAP_TYPES,
    REQUIRED_MAP_TYPE,
    ElfError,
    SafetyReport,
)

_ELF_MAGIC = b"\x7fELF"
_IDENT_SIZE = 16
_ELFCLASS32 = 1
_ELFCLASS64 = 2
_ELFDATA2LSB = 1
_ELFDATA2MSB = 2

_SHT_SYMTAB = 2
_SHT_NOBITS = 8
_SHN_XINDEX = 0xFFFF


@dataclass(frozen=True)
class _Layout:
    header: struct.Struct
    section: struct.Struct
    symbol: struct.Struct
    wide: bool


def _layout(elf_class: int, order: str) -> _Layout:
    if elf_class == _ELFCLASS64:
        return _Layout(
            header=struct.Struct(order + "HHIQQQIHHHHHH"),
            section=struct.Struct(order + "IIQQQQIIQQ"),
            symbol=struct.Struct(order + "IBBHQQ"),
            wide=True,
        )
    return _Layout(
        header=struct.Struct(order + "HHIIIIIHHHHHH"),
        section=struct.Struct(order + "IIIIIIIIII"),
        symbol=struct.Struct(order + "IIIBBH"),
        wide=False,
    )


@dataclass(frozen=True)
class _SectionHeader:
    name_offset: int
    section_type: int
    offset: int
    size: int
    link: int


@dataclass(frozen=True)
class ElfSection:
    """One section of an ELF object.

    ``name`` is None when the name cannot be read; ``data`` is None when the
    section's contents lie outside the file.
    """

    index: int
    name: Optional[str]
    section_type: int
    data: Optional[bytes]


def _slice(data: bytes, offset: int, size: int) -> Optional[bytes]:
    if offset < 0 or size < 0 or offset + size > len(data):
        return None
    return data[offset : offset + size]


def _c_string(table: Optional[bytes], offset: int) -> Optional[str]:
    if table is None or offset >= len(table):
        return None
    end = table.find(b"\x00", offset)
    if end < 0:
        return None
    try:
        return table[offset:end].decode("utf-8")
    except UnicodeDecodeError:
        return None


def _section_data(data: bytes, header: _SectionHeader) -> Optional[bytes]:
    if header.section_type == _SHT_NOBITS:
        return b""
    return _slice(data, header.offset, header.size)


class ElfObject:
    """Parsed view of an ELF object: its sections and symbol names."""

    def __init__(
        self, sections: Iterable[ElfSection], symbol_names: Iterable[str]
    ) -> None:
        self._sections = tuple(sections)
        self._symbol_names = frozenset(symbol_names)

    @classmethod
    def parse(cls, data: bytes) -> "ElfObject":
        """Parse raw ELF bytes.

        Raises ElfError if the header, section table, section name table or
        symbol table is malformed.
        """
        data = bytes(data)
        if len(data) < _IDENT_SIZE or data[:4] != _ELF_MAGIC:
            raise ElfError("unknown file format")
        elf_class, encoding = data[4], data[5]
        if elf_class not in (_ELFCLASS32, _ELFCLASS64):
            raise ElfError(f"unsupported ELF class {elf_class}")
        if encoding == _ELFDATA2LSB:
            order = "<"
        elif encoding == _ELFDATA2MSB:
            order = ">"
        else:
            raise ElfError(f"unsupported ELF data encoding {encoding}")

        layout = _layout(elf_class, order)
        raw_header = _slice(data, _IDENT_SIZE, layout.header.size)
        if raw_header is None:
            raise ElfError("invalid ELF header size or alignment")
        (
            _e_type,
            _machine,
            _version,
            _entry,
            _phoff,
            shoff,
            _flags,
            _ehsize,
            _phentsize,
            _phnum,
            shentsize,
            shnum,
            shstrndx,
        ) = layout.header.unpack(raw_header)

        headers = cls._read_section_headers(data, layout, shoff, shentsize, shnum)

        if shstrndx == _SHN_XINDEX:
            shstrndx = headers[0].link if headers else 0
        if shstrndx == 0:
            names_table: Optional[bytes] = None
        else:
            if shstrndx >= len(headers):
                raise ElfError("invalid ELF section header string table index")
            names_table = _section_data(data, headers[shstrndx])
            if names_table is None:
                raise ElfError("invalid ELF section header string table data")

        sections = [
            ElfSection(
                index=index,
                name=_c_string(names_table, header.name_offset),
                section_type=header.section_type,
                data=_section_data(data, header),
            )
            for index, header in enumerate(headers)
        ]
        return cls(sections, cls._read_symbol_names(data, layout, headers))

    @staticmethod
    def _read_section_headers(
        data: bytes, layout: _Layout, shoff: int, shentsize: int, shnum: int
    ) -> list[_SectionHeader]:
        if shoff == 0:
            return []
        if shentsize != layout.section.size:
            raise ElfError("invalid ELF section header entry size")

        def read(index: int) -> _SectionHeader:
            raw = _slice(data, shoff + index * shentsize, shentsize)
            if raw is None:
                raise ElfError("invalid ELF section header offset or size")
            name, sh_type, _flags, _addr, offset, size, link, *_ = (
                layout.section.unpack(raw)
            )
            return _SectionHeader(name, sh_type, offset, size, link)

        first = read(0)
        count = shnum if shnum != 0 else first.size
        if count == 0:
            return []
        return [first] + [read(index) for index in range(1, count)]

    @staticmethod
    def _read_symbol_names(
        data: bytes, layout: _Layout, headers: list[_SectionHeader]
    ) -> set[str]:
        symtab = next((h for h in headers if h.section_type == _SHT_SYMTAB), None)
        if symtab is None:
            return set()
        table = _section_data(data, symtab)
        if table is None:
            raise ElfError("invalid ELF symbol table data")
        if symtab.link >= len(headers):
            raise ElfError("invalid ELF string table section index")
        strings = _section_data(data, headers[symtab.link])
        if strings is None:
            raise ElfError("invalid ELF string table data")

        entry_size = layout.symbol.size
        count = len(table) // entry_size
        names: set[str] = set()
        for fields in layout.symbol.iter_unpack(table[entry_size : count * entry_size]):
            name = _c_string(strings, fields[0])
            if name is not None:
                names.add(name)
        return names

    def symbol_names(self) -> frozenset[str]:
        """Return the names of all readable entries in the symbol table."""
        return self._symbol_names

    def sections(self) -> tuple[ElfSection, ...]:
        """Return all sections, including the null section at index 0."""
        return self._sections

    def __repr__(self) -> str:
        return (
            f"ElfObject(sections={len(self._sections)}, "
            f"symbols={len(self._symbol_names)})"
        )


def _is_scanned_section(name: str) -> bool:
    return "maps" in name or ".rodata" in name


def analyze_elf(elf_bytes: bytes) -> SafetyReport:
    """Analyze a compiled XDP object for forbidden helpers and map types.

    XDP return actions are compile-time constants and are not detected here;
    the LRU map is reported but not required for ``is_safe``.
    Raises ElfError if the bytes are not a valid ELF object.
    """
    elf = ElfObject.parse(elf_bytes)
    symbols = elf.symbol_names()

    report = SafetyReport(
        forbidden_helpers=[h for h in FORBIDDEN_BPF_HELPERS if h in symbols]
    )

    for section in elf.sections():
        if section.name is None or not _is_scanned_section(section.name):
            continue
        if section.data is None:
            continue
        text = section.data.decode("utf-8", errors="replace")
        report.forbidden_map_types.extend(
            map_type for map_type in FORBIDDEN_MAP_TYPES if map_type in text
        )
        if REQUIRED_MAP_TYPE in text:
            report.has_lru_map = True

    report.is_safe = (
        not report.forbidden_actions
        and not report.forbidden_helpers
        and not report.forbidden_map_types
    )
    return report