from dataclasses import dataclass, field

from evmflow import ops
from evmflow.info import SpecId, op_info_map
from evmflow.instructions import InstData, InstFlags
from evmflow.sections import Section, SectionAnalysis


@dataclass
class FakeBytecode:
    insts: list
    eof: bool = False
    has_dynamic_jumps: bool = False
    spec_id: SpecId = SpecId.CANCUN

    def is_eof(self):
        return self.eof

    def inst(self, inst):
        return self.insts[inst]


def make_insts(opcodes, spec_id=SpecId.CANCUN):
    infos = op_info_map(spec_id)
    result = []
    for pc, opcode in enumerate(opcodes):
        info = infos[opcode]
        flags = InstFlags(0)
        if info.is_unknown():
            flags |= InstFlags.UNKNOWN
        if info.is_disabled():
            flags |= InstFlags.DISABLED
        result.append(InstData(opcode=opcode, flags=flags, base_gas=info.base_gas(), pc=pc))
    return result


def run(bytecode):
    analysis = SectionAnalysis()
    for index, data in enumerate(bytecode.insts):
        if not data.is_dead_code():
            analysis.process(bytecode, index)
    analysis.finish(bytecode)
    return [data.section for data in bytecode.insts]


def heads(sections):
    return [i for i, s in enumerate(sections) if not s.is_empty()]


def test_section_is_empty():
    assert Section().is_empty()
    assert not Section(gas_cost=1).is_empty()
    assert not Section(max_growth=-1).is_empty()


def test_straight_line_single_section():
    bc = FakeBytecode(make_insts([ops.PUSH1, ops.PUSH1, ops.ADD, ops.STOP]))
    sections = run(bc)
    assert heads(sections) == [0]
    assert sections[0].gas_cost == sum(d.base_gas for d in bc.insts)
    assert sections[0].inputs == 0
    assert sections[0].max_growth == 2


def test_underflow_inputs():
    bc = FakeBytecode(make_insts([ops.ADD, ops.STOP]))
    sections = run(bc)
    assert sections[0].inputs == ops.opcode_spec(ops.ADD).inputs
    assert sections[0].gas_cost == 3


def test_inputs_account_for_earlier_pushes():
    bc = FakeBytecode(make_insts([ops.PUSH0, ops.ADD, ops.STOP]))
    sections = run(bc)
    add = ops.opcode_spec(ops.ADD)
    push0 = ops.opcode_spec(ops.PUSH0)
    assert sections[0].inputs == add.inputs - push0.outputs


def test_jump_ends_section():
    bc = FakeBytecode(make_insts([ops.PUSH0, ops.JUMP, ops.PUSH0, ops.STOP]))
    sections = run(bc)
    assert heads(sections) == [0, 2]
    assert sections[0].gas_cost == bc.insts[0].base_gas + bc.insts[1].base_gas


def test_reachable_jumpdest_starts_section():
    insts = make_insts([ops.PUSH0, ops.JUMPDEST, ops.PUSH0, ops.STOP])
    insts[1].data = 1
    bc = FakeBytecode(insts)
    sections = run(bc)
    assert heads(sections) == [0, 1]
    assert sections[1].gas_cost == insts[1].base_gas + insts[2].base_gas


def test_unreachable_jumpdest_does_not_split():
    bc = FakeBytecode(make_insts([ops.PUSH0, ops.JUMPDEST, ops.PUSH0, ops.STOP]))
    assert heads(run(bc)) == [0]


def test_dynamic_jumps_make_every_jumpdest_reachable():
    bc = FakeBytecode(
        make_insts([ops.PUSH0, ops.JUMPDEST, ops.PUSH0, ops.STOP]), has_dynamic_jumps=True
    )
    assert heads(run(bc)) == [0, 1]


def test_gas_ends_legacy_section():
    bc = FakeBytecode(make_insts([ops.PUSH0, ops.GAS, ops.PUSH0, ops.STOP]))
    assert heads(run(bc)) == [0, 2]


def test_gas_does_not_end_eof_section():
    bc = FakeBytecode(make_insts([ops.PUSH0, ops.GAS, ops.PUSH0, ops.STOP]), eof=True)
    sections = run(bc)
    assert heads(sections) == [0]
    assert sections[0].gas_cost == sum(d.base_gas for d in bc.insts)


def test_eof_jumpdest_flag_starts_section():
    insts = make_insts([ops.PUSH0, ops.PUSH0, ops.PUSH0, ops.STOP])
    insts[2].flags |= InstFlags.EOF_JUMPDEST
    bc = FakeBytecode(insts, eof=True)
    assert heads(run(bc)) == [0, 2]


def test_call_ends_section():
    bc = FakeBytecode(make_insts([ops.CALL, ops.PUSH0, ops.STOP]))
    assert heads(run(bc)) == [0, 1]


def test_section_saved_on_first_live_instruction():
    insts = make_insts([ops.PUSH0, ops.PUSH0, ops.STOP])
    insts[0].flags |= InstFlags.DEAD_CODE
    bc = FakeBytecode(insts)
    sections = run(bc)
    assert sections[0].is_empty()
    assert sections[1].gas_cost == insts[1].base_gas + insts[2].base_gas


def test_gas_cost_clamped_to_u32():
    insts = [InstData(opcode=ops.ADD, base_gas=2**32 + 5), InstData(opcode=ops.STOP)]
    sections = run(FakeBytecode(insts))
    assert sections[0].gas_cost == 0xFFFF_FFFF