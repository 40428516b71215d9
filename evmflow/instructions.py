"""Per-instruction data and flags of analysed bytecode."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntFlag

from evmflow import ops
from evmflow.info import SpecId
from evmflow.opcode import Opcode, min_imm_len, stack_io
from evmflow.sections import Section


class InstFlags(IntFlag):
    """Analysis flags attached to an instruction."""

    STATIC_JUMP = 1 << 0
    """The ``JUMP``/``JUMPI`` target is known statically."""
    INVALID_JUMP = 1 << 1
    """The jump target is known to be invalid."""
    EOF_JUMPDEST = 1 << 2
    """The instruction is the target of at least one ``RJUMP*``."""
    DISABLED = 1 << 3
    """The opcode is not active in this hardfork."""
    UNKNOWN = 1 << 4
    """The opcode is not assigned."""
    EOF_ONLY = 1 << 5
    """The opcode is only allowed in EOF bytecode."""
    SKIP_LOGIC = 1 << 6
    """Skip the instruction logic but keep its gas accounting."""
    DEAD_CODE = 1 << 7
    """The instruction is unreachable."""


_LEGACY_SUSPENDING = frozenset(
    {ops.CALL, ops.CALLCODE, ops.DELEGATECALL, ops.STATICCALL, ops.CREATE, ops.CREATE2}
)
_EOF_SUSPENDING = frozenset({ops.EXTCALL, ops.EXTDELEGATECALL, ops.EXTSTATICCALL, ops.EOFCREATE})
_ALWAYS_DIVERGING = frozenset({ops.STOP, ops.RETURN, ops.REVERT, ops.INVALID})
_EOF_DIVERGING = frozenset({ops.JUMPF, ops.RETF, ops.RETURNCONTRACT})
_EOF_JUMPS = frozenset({ops.RJUMP, ops.RJUMPI, ops.RJUMPV})
_LEGACY_JUMPS = frozenset({ops.JUMP, ops.JUMPI})


@dataclass
class InstData:
    """One instruction of a bytecode.

    ``data`` depends on the instruction: for a static ``JUMP``/``JUMPI`` it is
    the target instruction, for a ``JUMPDEST`` it is 1 when the destination is
    known to be reachable.
    """

    opcode: int = 0
    flags: InstFlags = InstFlags(0)
    base_gas: int = 0
    data: int = 0
    pc: int = 0
    section: Section = field(default_factory=Section)

    def __repr__(self) -> str:
        return (
            f"InstData(opcode={self.to_op()}, flags={self.flags!r}, data={self.data}, "
            f"pc={self.pc}, section={self.section!r})"
        )

    def imm_len(self) -> int:
        """Length of the fixed immediate data of this instruction."""
        return min_imm_len(self.opcode)

    def stack_io(self) -> tuple[int, int]:
        """Stack inputs and outputs, not counting a statically known jump target."""
        inp, out = stack_io(self.opcode)
        if self.is_legacy_static_jump() and not (
            self.opcode == ops.JUMPI and InstFlags.INVALID_JUMP in self.flags
        ):
            inp -= 1
        return inp, out

    def to_op(self) -> Opcode:
        """The opcode of this instruction, without its immediate."""
        return Opcode(self.opcode, None)

    def is_push(self) -> bool:
        return ops.PUSH0 <= self.opcode <= ops.PUSH32

    def is_jump(self, is_eof: bool) -> bool:
        return self.is_eof_jump() if is_eof else self.is_legacy_jump()

    def is_eof_jump(self) -> bool:
        """True for ``RJUMP``, ``RJUMPI`` and ``RJUMPV``."""
        return self.opcode in _EOF_JUMPS

    def is_legacy_jump(self) -> bool:
        """True for ``JUMP`` and ``JUMPI``."""
        return self.opcode in _LEGACY_JUMPS

    def is_legacy_static_jump(self) -> bool:
        """True for a ``JUMP``/``JUMPI`` whose target is known statically."""
        return self.is_legacy_jump() and InstFlags.STATIC_JUMP in self.flags

    def is_jumpdest(self) -> bool:
        return self.opcode == ops.JUMPDEST

    def is_reachable_jumpdest(self, is_eof: bool, has_dynamic_jumps: bool) -> bool:
        if is_eof:
            return InstFlags.EOF_JUMPDEST in self.flags
        return self.is_jumpdest() and (has_dynamic_jumps or self.data == 1)

    def is_dead_code(self) -> bool:
        return InstFlags.DEAD_CODE in self.flags

    def requires_gasleft(self, spec_id: SpecId) -> bool:
        """True if the instruction needs the remaining gas; calls and creates excluded."""
        return self.opcode == ops.GAS or (
            self.opcode == ops.SSTORE and SpecId(spec_id).is_enabled_in(SpecId.ISTANBUL)
        )

    def is_branching(self, is_eof: bool) -> bool:
        """True if the instruction jumps or stops execution."""
        return self.is_jump(is_eof) or self.is_diverging(is_eof)

    def is_diverging(self, is_eof: bool) -> bool:
        """True if the instruction is known to stop execution."""
        return (
            (self.opcode == ops.JUMP and InstFlags.INVALID_JUMP in self.flags)
            or InstFlags.DISABLED in self.flags
            or InstFlags.UNKNOWN in self.flags
            or self.opcode in _ALWAYS_DIVERGING
            or (not is_eof and self.opcode == ops.SELFDESTRUCT)
            or (is_eof and self.opcode in _EOF_DIVERGING)
        )

    def may_suspend(self, is_eof: bool) -> bool:
        """True if execution may suspend here to be resumed later."""
        return self.opcode in (_EOF_SUSPENDING if is_eof else _LEGACY_SUSPENDING)