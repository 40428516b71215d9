"""Grouping of instructions into straight-line sections for gas and stack checks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from evmflow.bytecode import Bytecode

_log = logging.getLogger(__name__)

_U16_MAX = 0xFFFF
_U32_MAX = 0xFFFF_FFFF
_I16_MIN = -0x8000
_I16_MAX = 0x7FFF


def _fit(value: int, low: int, high: int, fallback: int) -> int:
    return value if low <= value <= high else fallback


@dataclass(frozen=True)
class Section:
    """Instructions run one after another with no jump or branch in between.

    ``gas_cost`` is the summed base gas, ``inputs`` the stack height needed to
    start the section and ``max_growth`` the largest stack growth inside it.
    """

    gas_cost: int = 0
    inputs: int = 0
    max_growth: int = 0

    def is_empty(self) -> bool:
        """True if the section carries no gas cost and no stack requirement."""
        return self == Section()

    def __repr__(self) -> str:
        if self.is_empty():
            return "Section(EMPTY)"
        return (
            f"Section(gas_cost={self.gas_cost}, stack_req={self.inputs}, "
            f"stack_max_growth={self.max_growth})"
        )


@dataclass
class SectionAnalysis:
    """Walks the live instructions of a bytecode and records a section on each section head."""

    inputs: int = 0
    diff: int = 0
    max_growth: int = 0
    gas_cost: int = 0
    start_inst: int = 0

    def process(self, bytecode: Bytecode, inst: int) -> None:
        """Account for one instruction, closing sections where needed."""
        is_eof = bytecode.is_eof()

        # A reachable jump destination starts a section.
        if bytecode.inst(inst).is_reachable_jumpdest(is_eof, bytecode.has_dynamic_jumps):
            self._save_to(bytecode, inst)
            self._reset(inst)

        data = bytecode.inst(inst)
        inp, out = data.stack_io()
        self.inputs = max(self.inputs, inp - self.diff)
        self.diff += out - inp
        self.max_growth = max(self.max_growth, self.diff)
        self.gas_cost += data.base_gas

        # Instructions that need `gasleft`, may suspend, or branch end the section.
        if (
            (not is_eof and data.requires_gasleft(bytecode.spec_id))
            or data.may_suspend(is_eof)
            or data.is_branching(is_eof)
        ):
            following = inst + 1
            self._save_to(bytecode, following)
            self._reset(following)

    def finish(self, bytecode: Bytecode) -> None:
        """Store the last open section."""
        self._save_to(bytecode, len(bytecode.insts) - 1)
        if _log.isEnabledFor(logging.DEBUG):
            max_len = 0
            current = 0
            count = 0
            for index, data in enumerate(bytecode.insts):
                if data.is_dead_code() or data.section.is_empty():
                    continue
                max_len = max(max_len, index - current)
                current = index
                count += 1
            _log.debug("sections: count=%d max_len=%d", count, max_len)

    def _save_to(self, bytecode: Bytecode, next_section_inst: int) -> None:
        insts = bytecode.insts
        if self.start_inst >= len(insts):
            return
        section = self._section()
        if section.is_empty():
            return
        _log.debug(
            "saving section at %d (len %d): %r",
            self.start_inst,
            next_section_inst - self.start_inst,
            section,
        )
        head = next((d for d in insts[self.start_inst :] if not d.is_dead_code()), None)
        if head is not None:
            head.section = section

    def _reset(self, inst: int) -> None:
        self.inputs = 0
        self.diff = 0
        self.max_growth = 0
        self.gas_cost = 0
        self.start_inst = inst

    def _section(self) -> Section:
        return Section(
            gas_cost=_fit(self.gas_cost, 0, _U32_MAX, _U32_MAX),
            inputs=_fit(self.inputs, 0, _U16_MAX, _U16_MAX),
            max_growth=_fit(self.max_growth, _I16_MIN, _I16_MAX, _I16_MAX),
        )