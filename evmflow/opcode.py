"""Iteration over EVM bytecode as opcodes with their immediate data."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from functools import total_ordering

from evmflow import ops
from evmflow.eof import EOF_MAGIC, Eof, EofDecodeError
from evmflow.info import OpcodeInfo, SpecId, op_info_map


@total_ordering
@dataclass(frozen=True, repr=False)
class Opcode:
    """An opcode byte and its immediate data, if any."""

    opcode: int
    immediate: bytes | None = None

    def _key(self) -> tuple[int, bool, bytes]:
        return (self.opcode, self.immediate is not None, self.immediate or b"")

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Opcode):
            return NotImplemented
        return self._key() < other._key()

    def __str__(self) -> str:
        text = ops.opcode_name(self.opcode)
        if self.immediate is not None:
            text += f" 0x{self.immediate.hex()}"
        return text

    __repr__ = __str__


def min_imm_len(opcode: int) -> int:
    """Length of the immediate data of ``opcode``, or 0 if it has none.

    For ``RJUMPV`` this is only the fixed part; the jump table follows it.
    """
    spec = ops.opcode_spec(opcode)
    return spec.immediate_size if spec is not None else 0


def stack_io(opcode: int) -> tuple[int, int]:
    """Number of stack inputs and outputs of ``opcode``; ``(0, 0)`` if unknown."""
    spec = ops.opcode_spec(opcode)
    if spec is None:
        return (0, 0)
    return (spec.inputs, spec.outputs)


class OpcodesIter:
    """Iterator yielding the opcodes of a bytecode, with their immediates.

    Malformed bytecode is still iterated: an immediate that runs past the end
    of the code is reported as ``None``.
    """

    def __init__(self, code: bytes, spec_id: SpecId) -> None:
        self._code = bytes(code)
        self._pos = 0
        self._info: tuple[OpcodeInfo, ...] = op_info_map(spec_id)

    def _copy(self) -> OpcodesIter:
        clone = OpcodesIter.__new__(OpcodesIter)
        clone._code = self._code
        clone._pos = self._pos
        clone._info = self._info
        return clone

    def __iter__(self) -> OpcodesIter:
        return self

    def __next__(self) -> Opcode:
        code = self._code
        if self._pos >= len(code):
            raise StopIteration
        opcode = code[self._pos]
        self._pos += 1

        info = self._info[opcode]
        if info.is_unknown() or info.is_disabled():
            return Opcode(opcode)

        pos = self._pos
        length = min_imm_len(opcode)
        if opcode == ops.RJUMPV and pos < len(code):
            length += (code[pos] + 1) * 2
        if length == 0:
            return Opcode(opcode)

        end = pos + length
        immediate = code[pos:end] if end <= len(code) else None
        self._pos = min(end, len(code))
        return Opcode(opcode, immediate)

    def with_pc(self) -> Iterator[tuple[int, Opcode]]:
        """Yield ``(pc, opcode)`` pairs, consuming this iterator."""
        pc = 0
        for op in self:
            yield pc, op
            pc += 1
            if op.immediate is not None:
                pc += len(op.immediate)

    def __str__(self) -> str:
        return " ".join(str(op) for op in self._copy())


def format_bytecode(bytecode: bytes, spec_id: SpecId) -> str:
    """Return a human-readable rendering of ``bytecode``."""
    spec_id = SpecId(spec_id)
    bytecode = bytes(bytecode)
    if spec_id.is_enabled_in(SpecId.PRAGUE) and bytecode.startswith(EOF_MAGIC):
        try:
            return repr(Eof.decode(bytecode))
        except EofDecodeError as exc:
            return f"invalid EOF container: {exc}"
    return str(OpcodesIter(bytecode, spec_id))