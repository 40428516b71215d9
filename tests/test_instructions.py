import pytest

from evmflow import ops
from evmflow.info import SpecId
from evmflow.instructions import InstData, InstFlags
from evmflow.opcode import Opcode


def test_defaults():
    data = InstData(opcode=ops.ADD)
    assert data.flags == InstFlags(0)
    assert data.section.is_empty()
    assert data.data == 0


def test_imm_len():
    assert InstData(opcode=ops.PUSH2).imm_len() == ops.opcode_spec(ops.PUSH2).immediate_size
    assert InstData(opcode=ops.RJUMPV).imm_len() == ops.opcode_spec(ops.RJUMPV).immediate_size
    assert InstData(opcode=ops.ADD).imm_len() == 0


def test_to_op():
    op = InstData(opcode=ops.PUSH1).to_op()
    assert op == Opcode(ops.PUSH1, None)
    assert str(op) == "PUSH1"


@pytest.mark.parametrize("opcode", [ops.PUSH0, ops.PUSH1, ops.PUSH32])
def test_is_push(opcode):
    assert InstData(opcode=opcode).is_push()


@pytest.mark.parametrize("opcode", [ops.DUP1, ops.JUMPDEST, ops.STOP])
def test_is_not_push(opcode):
    assert not InstData(opcode=opcode).is_push()


def test_jump_kinds():
    assert InstData(opcode=ops.JUMP).is_legacy_jump()
    assert InstData(opcode=ops.JUMPI).is_jump(False)
    assert not InstData(opcode=ops.JUMP).is_jump(True)
    assert InstData(opcode=ops.RJUMPV).is_eof_jump()
    assert InstData(opcode=ops.RJUMP).is_jump(True)
    assert not InstData(opcode=ops.RJUMP).is_jump(False)


def test_static_jump_stack_io():
    plain = InstData(opcode=ops.JUMP)
    static = InstData(opcode=ops.JUMP, flags=InstFlags.STATIC_JUMP)
    assert static.is_legacy_static_jump()
    assert not plain.is_legacy_static_jump()
    assert static.stack_io()[0] == plain.stack_io()[0] - 1


def test_invalid_static_jumpi_keeps_inputs():
    plain = InstData(opcode=ops.JUMPI)
    valid = InstData(opcode=ops.JUMPI, flags=InstFlags.STATIC_JUMP)
    invalid = InstData(opcode=ops.JUMPI, flags=InstFlags.STATIC_JUMP | InstFlags.INVALID_JUMP)
    assert valid.stack_io()[0] == plain.stack_io()[0] - 1
    assert invalid.stack_io() == plain.stack_io()


def test_reachable_jumpdest():
    dest = InstData(opcode=ops.JUMPDEST)
    assert dest.is_jumpdest()
    assert not dest.is_reachable_jumpdest(False, False)
    assert dest.is_reachable_jumpdest(False, True)
    dest.data = 1
    assert dest.is_reachable_jumpdest(False, False)
    assert not dest.is_reachable_jumpdest(True, True)
    flagged = InstData(opcode=ops.ADD, flags=InstFlags.EOF_JUMPDEST)
    assert flagged.is_reachable_jumpdest(True, False)


def test_dead_code():
    assert InstData(flags=InstFlags.DEAD_CODE).is_dead_code()
    assert not InstData().is_dead_code()


def test_requires_gasleft():
    assert InstData(opcode=ops.GAS).requires_gasleft(SpecId.FRONTIER)
    assert InstData(opcode=ops.SSTORE).requires_gasleft(SpecId.ISTANBUL)
    assert not InstData(opcode=ops.SSTORE).requires_gasleft(SpecId.BYZANTIUM)
    assert not InstData(opcode=ops.CALL).requires_gasleft(SpecId.CANCUN)


@pytest.mark.parametrize("opcode", [ops.STOP, ops.RETURN, ops.REVERT, ops.INVALID])
def test_always_diverging(opcode):
    data = InstData(opcode=opcode)
    assert data.is_diverging(False)
    assert data.is_diverging(True)
    assert data.is_branching(False)


def test_diverging_depends_on_format():
    assert InstData(opcode=ops.SELFDESTRUCT).is_diverging(False)
    assert not InstData(opcode=ops.SELFDESTRUCT).is_diverging(True)
    for opcode in (ops.JUMPF, ops.RETF, ops.RETURNCONTRACT):
        assert InstData(opcode=opcode).is_diverging(True)
        assert not InstData(opcode=opcode).is_diverging(False)


def test_diverging_flags():
    assert InstData(opcode=ops.JUMP, flags=InstFlags.INVALID_JUMP).is_diverging(False)
    assert not InstData(opcode=ops.JUMPI, flags=InstFlags.INVALID_JUMP).is_diverging(False)
    assert InstData(opcode=ops.ADD, flags=InstFlags.UNKNOWN).is_diverging(False)
    assert InstData(opcode=ops.PUSH0, flags=InstFlags.DISABLED).is_diverging(False)
    assert not InstData(opcode=ops.ADD).is_diverging(False)


def test_branching():
    assert InstData(opcode=ops.JUMPI).is_branching(False)
    assert InstData(opcode=ops.RJUMPI).is_branching(True)
    assert not InstData(opcode=ops.ADD).is_branching(False)


def test_may_suspend():
    for opcode in (ops.CALL, ops.CALLCODE, ops.DELEGATECALL, ops.STATICCALL, ops.CREATE, ops.CREATE2):
        assert InstData(opcode=opcode).may_suspend(False)
        assert not InstData(opcode=opcode).may_suspend(True)
    for opcode in (ops.EXTCALL, ops.EXTDELEGATECALL, ops.EXTSTATICCALL, ops.EOFCREATE):
        assert InstData(opcode=opcode).may_suspend(True)
        assert not InstData(opcode=opcode).may_suspend(False)
    assert not InstData(opcode=ops.ADD).may_suspend(False)


def test_repr_names_opcode():
    assert "PUSH0" in repr(InstData(opcode=ops.PUSH0))