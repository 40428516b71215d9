"""Analysed EVM bytecode: instructions, jump resolution, dead code and sections."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from itertools import islice

from evmflow import ops
from evmflow.eof import Eof
from evmflow.info import SpecId, op_info_map
from evmflow.instructions import InstData, InstFlags
from evmflow.opcode import Opcode, OpcodesIter
from evmflow.sections import SectionAnalysis

_log = logging.getLogger(__name__)

_MAX_CALLED_BY_ITERATIONS = 32
_MAX_JUMP_TARGET_BYTES = 8
_SMALL_LIMIT = 2000


class AnalysisError(Exception):
    """Raised when the bytecode cannot be analysed."""


class Bytecode:
    """EVM bytecode split into instructions, ready for analysis.

    When ``eof`` is given, the code analysed is the concatenation of its code
    sections and ``code`` is ignored.
    """

    def __init__(self, code: bytes, spec_id: SpecId, eof: Eof | None = None) -> None:
        spec_id = SpecId(spec_id)
        code = eof.code() if eof is not None else bytes(code)
        is_eof = eof is not None

        self.code: bytes = code
        self.eof: Eof | None = eof
        self.spec_id: SpecId = spec_id
        self.has_dynamic_jumps: bool = False
        self.may_suspend: bool = False
        self.insts: list[InstData] = []
        # Jump destination analysis is not done in EOF.
        self._jumpdests = bytearray(0 if is_eof else len(code))
        self._pc_to_inst: dict[int, int] = {}
        self._eof_called_by: list[list[int]] = []
        self._section_offsets: list[int] = eof.section_offsets() if eof is not None else []

        infos = op_info_map(spec_id)
        for index, (pc, op) in enumerate(OpcodesIter(code, spec_id).with_pc()):
            self._pc_to_inst[pc] = index
            opcode = op.opcode
            if not is_eof and opcode == ops.JUMPDEST:
                self._jumpdests[pc] = 1

            info = infos[opcode]
            flags = InstFlags(0)
            if info.is_unknown():
                flags |= InstFlags.UNKNOWN
            if info.is_disabled():
                flags |= InstFlags.DISABLED
            if info.is_eof_only():
                flags |= InstFlags.EOF_ONLY
            self.insts.append(
                InstData(opcode=opcode, flags=flags, base_gas=info.base_gas(), data=0, pc=pc)
            )

        # Make sure execution always ends with a diverging instruction.
        # EOF validation already guarantees this.
        if not is_eof and (not self.insts or not self.insts[-1].is_diverging(False)):
            self.insts.append(InstData(opcode=ops.STOP))

    def __repr__(self) -> str:
        return (
            f"Bytecode(code={self.code.hex()}, eof={self.eof!r}, insts={self.insts!r}, "
            f"spec_id={self.spec_id!r}, has_dynamic_jumps={self.has_dynamic_jumps}, "
            f"may_suspend={self.may_suspend})"
        )

    def __str__(self) -> str:
        header = f"{'ic':^6} | {'pc':^6} | {'opcode':^80} | instruction"
        lines = [header, "-" * len(header)]
        for index, (pc, op) in enumerate(self.opcodes().with_pc()):
            data = self.inst(index)
            lines.append(f"{index:>6} | {pc:>6} | {str(op):<80} | {data!r}")
        return "".join(f"{line}\n" for line in lines)

    def opcodes(self) -> OpcodesIter:
        """Iterate over the opcodes of the code."""
        return OpcodesIter(self.code, self.spec_id)

    def inst(self, inst: int) -> InstData:
        return self.insts[inst]

    def opcode(self, inst: int) -> Opcode:
        """The opcode at ``inst`` together with its immediate data."""
        data = self.insts[inst]
        return Opcode(data.opcode, self.get_imm(data))

    def iter_insts(self) -> Iterator[tuple[int, InstData]]:
        """Yield ``(index, instruction)`` for every live instruction."""
        return ((i, d) for i, d in enumerate(self.insts) if not d.is_dead_code())

    def iter_all_insts(self) -> Iterator[tuple[int, InstData]]:
        """Yield ``(index, instruction)`` for every instruction, dead code included."""
        return enumerate(self.insts)

    def analyze(self) -> None:
        """Run all analysis passes over the instructions."""
        if not self.is_eof():
            self._static_jump_analysis()
            # Must follow the jump analysis, which marks reachable jump destinations.
            self._mark_dead_code()

        self._calc_may_suspend()

        if self.is_eof():
            self._calc_eof_called_by()
            self._eof_mark_jumpdests()

        self._construct_sections()

    def _static_jump_analysis(self) -> None:
        insts = self.insts
        for jump_index, jump in enumerate(insts):
            push = insts[jump_index - 1] if jump_index > 0 else None
            if push is None or not (push.is_push() and jump.is_legacy_jump()):
                if jump.is_legacy_jump():
                    _log.debug("dynamic jump at %d", jump_index)
                    self.has_dynamic_jumps = True
                continue

            imm = self.get_imm(push)
            if push.opcode != ops.PUSH0 and imm is None:
                continue
            imm = imm or b""
            jump.flags |= InstFlags.STATIC_JUMP

            if len(imm) > _MAX_JUMP_TARGET_BYTES:
                _log.debug("jump target too large at %d", jump_index)
                jump.flags |= InstFlags.INVALID_JUMP
                continue

            target_pc = int.from_bytes(imm, "big")
            if not self.is_valid_jump(target_pc):
                _log.debug("invalid jump target at %d: pc %d", jump_index, target_pc)
                jump.flags |= InstFlags.INVALID_JUMP
                continue

            push.flags |= InstFlags.SKIP_LOGIC
            target = self.pc_to_inst(target_pc)
            insts[target].data = 1
            jump.data = target

    def _eof_mark_jumpdests(self) -> None:
        for data in self.insts:
            if data.is_eof_jump():
                for _, pc in self.iter_rjump_targets(data):
                    self.insts[self.pc_to_inst(pc)].flags |= InstFlags.EOF_JUMPDEST

    def _mark_dead_code(self) -> None:
        it = iter(enumerate(self.insts))
        for index, data in it:
            if not data.is_diverging(False):
                continue
            end = index
            for later, following in it:
                end = later
                if following.is_reachable_jumpdest(False, self.has_dynamic_jumps):
                    break
                following.flags |= InstFlags.DEAD_CODE
            if end > index + 1:
                _log.debug("found dead code: %d..%d", index + 1, end)

    def _calc_may_suspend(self) -> None:
        is_eof = self.is_eof()
        self.may_suspend = any(d.may_suspend(is_eof) for _, d in self.iter_insts())

    def _construct_sections(self) -> None:
        analysis = SectionAnalysis()
        for index, data in enumerate(self.insts):
            if not data.is_dead_code():
                analysis.process(self, index)
        analysis.finish(self)

    def _section_target(self, data: InstData) -> int:
        imm = self.get_imm(data)
        if imm is None or len(imm) != 2:
            raise AnalysisError(f"truncated immediate at pc {data.pc}")
        target = int.from_bytes(imm, "big")
        if target >= len(self._section_offsets):
            raise AnalysisError(f"code section {target} out of range at pc {data.pc}")
        return target

    def _calc_eof_called_by(self) -> None:
        section_count = len(self.expect_eof().code_sections)
        if section_count <= 1:
            return

        called_by: list[list[int]] = [[] for _ in range(section_count)]
        for index, data in enumerate(self.insts):
            if data.opcode == ops.CALLF:
                called_by[self._section_target(data)].append(index)

        first_section_inst = self.eof_section_inst(1)
        any_progress = True
        iterations = 0
        while any_progress and iterations < _MAX_CALLED_BY_ITERATIONS:
            any_progress = False
            for data in islice(self.insts, first_section_inst, None):
                if data.opcode != ops.JUMPF:
                    continue
                source = self.pc_to_eof_section(data.pc)
                target = self._section_target(data)
                if source == target:
                    raise AnalysisError(f"JUMPF to its own section {source} at pc {data.pc}")
                for caller in called_by[source]:
                    if caller not in called_by[target]:
                        any_progress = True
                        called_by[target].append(caller)
            iterations += 1

        if iterations >= _MAX_CALLED_BY_ITERATIONS:
            raise AnalysisError("EOF caller analysis did not converge")
        self._eof_called_by = called_by

    def eof_section_called_by(self, section: int) -> tuple[int, ...]:
        """Instructions that call the given EOF code section."""
        return tuple(self._eof_called_by[section])

    def get_imm(self, data: InstData) -> bytes | None:
        """Immediate data of ``data``, or None if it has none or it is truncated."""
        imm_len = data.imm_len()
        if imm_len == 0:
            return None
        start = data.pc + 1
        if data.opcode == ops.RJUMPV:
            if start >= len(self.code):
                return None
            imm_len += (self.code[start] + 1) * 2
        end = start + imm_len
        if end > len(self.code):
            return None
        return self.code[start:end]

    def is_valid_jump(self, pc: int) -> bool:
        """True if ``pc`` is a ``JUMPDEST`` in legacy code."""
        return 0 <= pc < len(self._jumpdests) and bool(self._jumpdests[pc])

    def is_eof(self) -> bool:
        return self.eof is not None

    def is_small(self) -> bool:
        """True if the bytecode has few enough instructions for costly passes."""
        return len(self.insts) < _SMALL_LIMIT

    def is_instr_diverging(self, inst: int) -> bool:
        return self.insts[inst].is_diverging(self.is_eof())

    def pc_to_inst(self, pc: int) -> int:
        """Instruction index of the opcode at program counter ``pc``."""
        try:
            return self._pc_to_inst[pc]
        except KeyError:
            raise IndexError(f"pc out of bounds: {pc}") from None

    def eof_section_pc(self, section: int) -> int:
        """Program counter of the start of EOF code section ``section``."""
        self.expect_eof()
        return self._section_offsets[section]

    def eof_section_inst(self, section: int) -> int:
        """First instruction of EOF code section ``section``."""
        return self.pc_to_inst(self.eof_section_pc(section))

    def pc_to_eof_section(self, pc: int) -> int:
        """Index of the EOF code section holding ``pc``."""
        self.expect_eof()
        for section in reversed(range(len(self._section_offsets))):
            if pc >= self._section_offsets[section]:
                return section
        raise IndexError(f"pc out of bounds: {pc}")

    def iter_rjump_target_insts(self, data: InstData) -> Iterator[tuple[int, int]]:
        """Yield ``(case, instruction)`` for each ``RJUMP*`` target of ``data``."""
        source = data.pc
        for case, pc in self.iter_rjump_targets(data):
            if self.pc_to_eof_section(source) != self.pc_to_eof_section(pc):
                raise AnalysisError(f"RJUMP* target out of bounds: {source} -> {pc}")
            yield case, self.pc_to_inst(pc)

    def iter_rjump_targets(self, data: InstData) -> Iterator[tuple[int, int]]:
        """Yield ``(case, pc)`` for each ``RJUMP*`` target of ``data``."""
        if not data.is_eof_jump():
            raise ValueError(f"not a relative jump: {data.to_op()}")
        imm = self.get_imm(data)
        if imm is None:
            raise AnalysisError(f"truncated immediate at pc {data.pc}")

        if data.opcode in (ops.RJUMP, ops.RJUMPI):
            offset = int.from_bytes(imm, "big", signed=True)
            return iter([(0, data.pc + 3 + offset)])

        max_index = imm[0]
        base_pc = data.pc + 2 + (max_index + 1) * 2
        table = imm[1:]
        return iter(
            [
                (case, base_pc + int.from_bytes(table[start : start + 2], "big", signed=True))
                for case, start in enumerate(range(0, len(table), 2))
            ]
        )

    def expect_eof(self) -> Eof:
        """The EOF container; raises ValueError for legacy code."""
        if self.eof is None:
            raise ValueError("EOF container not set")
        return self.eof

    def op_block_name(self, inst: int | None, name: str) -> str:
        """Name of the basic block for ``inst``; None names the entry block."""
        if inst is None:
            return f"entry.{name}"
        data = self.insts[inst]
        prefix = ""
        if self.is_eof():
            section = self.pc_to_eof_section(data.pc)
            prefix = f"S{section}."
            inst -= self.eof_section_inst(section)
        text = f"{prefix}OP{inst}.{data.to_op()}"
        if name:
            text += f".{name}"
        return text