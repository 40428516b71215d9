import pytest

from evmflow import ops
from evmflow.info import OpcodeInfo, SpecId, log_cost, op_info_map


def test_spec_ordering():
    assert SpecId.CANCUN.is_enabled_in(SpecId.SHANGHAI)
    assert SpecId.CANCUN.is_enabled_in(SpecId.CANCUN)
    assert not SpecId.MERGE.is_enabled_in(SpecId.SHANGHAI)
    assert SpecId.LATEST.is_enabled_in(SpecId.PRAGUE_EOF)


def test_push0_activation():
    assert op_info_map(SpecId.MERGE)[ops.PUSH0].is_disabled()
    shanghai = op_info_map(SpecId.SHANGHAI)[ops.PUSH0]
    assert not shanghai.is_disabled()
    assert shanghai.base_gas() == 2


def test_unknown_opcode():
    infos = op_info_map(SpecId.CANCUN)
    assert infos[0x21].is_unknown()
    assert infos[0x25].is_unknown()
    assert not infos[ops.ADD].is_unknown()


def test_base_gas_from_source_cases():
    infos = op_info_map(SpecId.CANCUN)
    assert infos[ops.ADD].base_gas() == 3
    assert infos[ops.JUMP].base_gas() == 8
    assert infos[ops.JUMPI].base_gas() == 10
    assert infos[ops.JUMPDEST].base_gas() == 1
    assert infos[ops.TLOAD].base_gas() == 100


def test_exp_is_dynamic_with_base():
    info = op_info_map(SpecId.CANCUN)[ops.EXP]
    assert info.is_dynamic()
    assert info.base_gas() == 10


def test_eof_opcodes_in_legacy_specs():
    assert op_info_map(SpecId.CANCUN)[ops.SWAPN].is_disabled()
    eof = op_info_map(SpecId.PRAGUE_EOF)[ops.SWAPN]
    assert not eof.is_disabled()
    assert eof.is_eof_only()
    assert not op_info_map(SpecId.PRAGUE_EOF)[ops.ADD].is_eof_only()


def test_shared_rules_between_forks():
    assert not op_info_map(SpecId.CONSTANTINOPLE)[ops.CREATE2].is_disabled()
    assert op_info_map(SpecId.BYZANTIUM)[ops.CREATE2].is_disabled()
    assert op_info_map(SpecId.MUIR_GLACIER) == op_info_map(SpecId.ISTANBUL)


def test_log_costs_match_table():
    infos = op_info_map(SpecId.CANCUN)
    step = log_cost(1) - log_cost(0)
    for n in range(5):
        info = infos[ops.LOG0 + n]
        assert info.is_dynamic()
        assert info.base_gas() == log_cost(n)
        assert log_cost(n) == log_cost(0) + n * step


def test_log_cost_zero():
    assert log_cost(0) == 375


@pytest.mark.parametrize("n", [-1, 256])
def test_log_cost_out_of_range(n):
    with pytest.raises(ValueError):
        log_cost(n)


def test_log_cost_overflow():
    with pytest.raises(ValueError):
        log_cost(255)


def test_set_gas_keeps_flags():
    info = OpcodeInfo(0)
    info.set_dynamic()
    info.set_eof()
    info.set_gas(OpcodeInfo.MASK)
    assert info.base_gas() == OpcodeInfo.MASK
    assert info.is_dynamic()
    assert info.is_eof_only()
    assert not info.is_disabled()


def test_set_gas_too_large():
    info = OpcodeInfo(0)
    with pytest.raises(ValueError):
        info.set_gas(OpcodeInfo.MASK + 1)


def test_set_unknown_clears_everything():
    info = OpcodeInfo(0)
    info.set_gas(3)
    info.set_disabled()
    assert info.is_disabled()
    info.set_unknown()
    assert info.is_unknown()
    assert info.base_gas() == 0
    info.set_dynamic()
    assert not info.is_unknown()


def test_map_is_a_fresh_copy():
    first = op_info_map(SpecId.CANCUN)
    first[ops.ADD].set_gas(7)
    assert op_info_map(SpecId.CANCUN)[ops.ADD].base_gas() == 3
    assert len(first) == 256


def test_invalid_spec():
    with pytest.raises(ValueError):
        op_info_map(42)