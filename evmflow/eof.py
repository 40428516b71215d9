"""Decoding and encoding of EOF (EVM Object Format) containers."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from itertools import accumulate, pairwise
from typing import ClassVar

EOF_MAGIC = b"\xef\x00"
EOF_VERSION = 1

KIND_TYPES = 0x01
KIND_CODE = 0x02
KIND_CONTAINER = 0x03
KIND_DATA = 0x04
KIND_TERMINATOR = 0x00

MAX_CODE_SECTIONS = 1024
MAX_CONTAINER_SECTIONS = 256


class EofDecodeError(ValueError):
    """Raised when bytes are not a well-formed EOF container."""


@dataclass(frozen=True)
class TypesSection:
    """Stack signature of one code section."""

    NON_RETURNING: ClassVar[int] = 0x80

    inputs: int
    outputs: int
    max_stack_size: int

    def _encode(self) -> bytes:
        return bytes([self.inputs, self.outputs]) + self.max_stack_size.to_bytes(2, "big")


def _split(data: bytes, sizes: Iterable[int]) -> list[bytes]:
    bounds = [0, *accumulate(sizes)]
    return [data[start:end] for start, end in pairwise(bounds)]


def _u16(value: int, what: str) -> bytes:
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"{what} {value} does not fit in 16 bits")
    return value.to_bytes(2, "big")


class _Reader:
    def __init__(self, data: bytes, pos: int = 0) -> None:
        self._data = data
        self.pos = pos

    def u8(self) -> int:
        if self.pos >= len(self._data):
            raise EofDecodeError("truncated header")
        value = self._data[self.pos]
        self.pos += 1
        return value

    def u16(self) -> int:
        return (self.u8() << 8) | self.u8()

    def kind(self, expected: int) -> None:
        found = self.u8()
        if found != expected:
            raise EofDecodeError(f"expected section kind {expected:#04x}, found {found:#04x}")

    def sizes(self, what: str, limit: int) -> list[int]:
        count = self.u16()
        if count == 0:
            raise EofDecodeError(f"no {what} sections")
        if count > limit:
            raise EofDecodeError(f"too many {what} sections: {count}")
        sizes = [self.u16() for _ in range(count)]
        if 0 in sizes:
            raise EofDecodeError(f"empty {what} section")
        return sizes


@dataclass(frozen=True)
class Eof:
    """A decoded EOF container."""

    types_section: tuple[TypesSection, ...]
    code_sections: tuple[bytes, ...]
    container_sections: tuple[bytes, ...]
    data_section: bytes
    data_size: int

    @property
    def is_data_filled(self) -> bool:
        """True if the data section holds as many bytes as the header declares."""
        return len(self.data_section) == self.data_size

    @classmethod
    def decode(cls, data: bytes) -> Eof:
        """Parse an EOF container from ``data``."""
        raw = bytes(data)
        if not raw.startswith(EOF_MAGIC):
            raise EofDecodeError("missing EOF magic")
        reader = _Reader(raw, len(EOF_MAGIC))
        version = reader.u8()
        if version != EOF_VERSION:
            raise EofDecodeError(f"unsupported EOF version {version}")

        reader.kind(KIND_TYPES)
        types_size = reader.u16()
        reader.kind(KIND_CODE)
        code_sizes = reader.sizes("code", MAX_CODE_SECTIONS)

        container_sizes: list[int] = []
        kind = reader.u8()
        if kind == KIND_CONTAINER:
            container_sizes = reader.sizes("container", MAX_CONTAINER_SECTIONS)
            kind = reader.u8()
        if kind != KIND_DATA:
            raise EofDecodeError(f"expected section kind {KIND_DATA:#04x}, found {kind:#04x}")
        data_size = reader.u16()
        if reader.u8() != KIND_TERMINATOR:
            raise EofDecodeError("missing header terminator")

        if types_size != 4 * len(code_sizes):
            raise EofDecodeError("types section size does not match the code sections")

        body = raw[reader.pos :]
        partial = types_size + sum(code_sizes) + sum(container_sizes)
        if len(body) < partial:
            raise EofDecodeError("body is shorter than its sections")
        if len(body) > partial + data_size:
            raise EofDecodeError("dangling data after the data section")

        types_bytes, code_bytes, container_bytes, data_bytes = _split(
            body, [types_size, sum(code_sizes), sum(container_sizes), len(body) - partial]
        )
        types = tuple(
            TypesSection(chunk[0], chunk[1], int.from_bytes(chunk[2:4], "big"))
            for chunk in _split(types_bytes, [4] * len(code_sizes))
        )
        return cls(
            types_section=types,
            code_sections=tuple(_split(code_bytes, code_sizes)),
            container_sections=tuple(_split(container_bytes, container_sizes)),
            data_section=data_bytes,
            data_size=data_size,
        )

    @classmethod
    def from_sections(
        cls,
        code_sections: Sequence[bytes],
        container_sections: Sequence[bytes],
        data: bytes,
    ) -> Eof:
        """Build a container whose first section is non-returning and the rest take no inputs."""
        if not code_sections:
            raise ValueError("an EOF container needs at least one code section")
        types = (TypesSection(0, TypesSection.NON_RETURNING, 0),) + tuple(
            TypesSection(0, 0, 0) for _ in code_sections[1:]
        )
        return cls(
            types_section=types,
            code_sections=tuple(bytes(code) for code in code_sections),
            container_sections=tuple(bytes(c) for c in container_sections),
            data_section=bytes(data),
            data_size=len(data),
        )

    def encode(self) -> bytes:
        """Serialise the container to its wire format."""
        if not self.code_sections:
            raise ValueError("an EOF container needs at least one code section")
        if len(self.types_section) != len(self.code_sections):
            raise ValueError("types section does not match the code sections")
        if len(self.code_sections) > MAX_CODE_SECTIONS:
            raise ValueError("too many code sections")
        if len(self.container_sections) > MAX_CONTAINER_SECTIONS:
            raise ValueError("too many container sections")

        header = bytearray(EOF_MAGIC)
        header.append(EOF_VERSION)
        header.append(KIND_TYPES)
        header += _u16(4 * len(self.types_section), "types size")
        header.append(KIND_CODE)
        header += _u16(len(self.code_sections), "code section count")
        for code in self.code_sections:
            header += _u16(len(code), "code section size")
        if self.container_sections:
            header.append(KIND_CONTAINER)
            header += _u16(len(self.container_sections), "container count")
            for container in self.container_sections:
                header += _u16(len(container), "container size")
        header.append(KIND_DATA)
        header += _u16(self.data_size, "data size")
        header.append(KIND_TERMINATOR)

        return b"".join(
            [
                bytes(header),
                *(types._encode() for types in self.types_section),
                *self.code_sections,
                *self.container_sections,
                self.data_section,
            ]
        )

    def code(self) -> bytes:
        """All code sections, concatenated."""
        return b"".join(self.code_sections)

    def section_offsets(self) -> list[int]:
        """Offset of each code section within :meth:`code`."""
        return [0, *accumulate(len(code) for code in self.code_sections)][:-1]