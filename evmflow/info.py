"""Per-hardfork opcode gas and availability information."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from functools import lru_cache
from typing import ClassVar

from evmflow import ops


class SpecId(IntEnum):
    """Ethereum hardfork identifiers, in activation order."""

    FRONTIER = 0
    FRONTIER_THAWING = 1
    HOMESTEAD = 2
    DAO_FORK = 3
    TANGERINE = 4
    SPURIOUS_DRAGON = 5
    BYZANTIUM = 6
    CONSTANTINOPLE = 7
    PETERSBURG = 8
    ISTANBUL = 9
    MUIR_GLACIER = 10
    BERLIN = 11
    LONDON = 12
    ARROW_GLACIER = 13
    GRAY_GLACIER = 14
    MERGE = 15
    SHANGHAI = 16
    CANCUN = 17
    PRAGUE = 18
    PRAGUE_EOF = 19
    LATEST = 255

    def is_enabled_in(self, other: SpecId) -> bool:
        """Return True if ``other`` is active in this hardfork."""
        return int(self) >= int(other)


# Hardforks that share the rules of an earlier or later one.
_RULES_OF = {
    SpecId.FRONTIER_THAWING: SpecId.FRONTIER,
    SpecId.DAO_FORK: SpecId.HOMESTEAD,
    SpecId.CONSTANTINOPLE: SpecId.PETERSBURG,
    SpecId.MUIR_GLACIER: SpecId.ISTANBUL,
    SpecId.ARROW_GLACIER: SpecId.LONDON,
    SpecId.GRAY_GLACIER: SpecId.LONDON,
}


@dataclass
class OpcodeInfo:
    """Packed base gas cost and flags of an opcode."""

    UNKNOWN: ClassVar[int] = 0b1000_0000_0000_0000
    DYNAMIC: ClassVar[int] = 0b0100_0000_0000_0000
    DISABLED: ClassVar[int] = 0b0010_0000_0000_0000
    EOF: ClassVar[int] = 0b0001_0000_0000_0000
    MASK: ClassVar[int] = 0b0000_1111_1111_1111

    bits: int = 0

    def is_unknown(self) -> bool:
        return self.bits == self.UNKNOWN

    def is_dynamic(self) -> bool:
        return bool(self.bits & self.DYNAMIC)

    def is_disabled(self) -> bool:
        """True if the opcode is known but not active in the hardfork."""
        return bool(self.bits & self.DISABLED)

    def is_eof_only(self) -> bool:
        """True if the opcode is only allowed in EOF bytecode."""
        return bool(self.bits & self.EOF)

    def base_gas(self) -> int:
        """Static part of the gas cost; dynamic opcodes may charge more."""
        return self.bits & self.MASK

    def set_unknown(self) -> None:
        self.bits = self.UNKNOWN

    def set_dynamic(self) -> None:
        self.bits |= self.DYNAMIC

    def set_disabled(self) -> None:
        self.bits |= self.DISABLED

    def set_eof(self) -> None:
        self.bits |= self.EOF

    def set_gas(self, gas: int) -> None:
        """Replace the base gas cost, keeping the flags."""
        if not 0 <= gas <= self.MASK:
            raise ValueError(f"gas cost {gas} does not fit in {self.MASK:#x}")
        self.bits = (self.bits & ~self.MASK & 0xFFFF) | (gas & self.MASK)


_LOG = 375
_LOGTOPIC = 375


def log_cost(n: int) -> int:
    """Static gas cost of a ``LOG<n>`` with no data."""
    if not 0 <= n <= 0xFF:
        raise ValueError(f"topic count out of range: {n}")
    gas = _LOG + _LOGTOPIC * n
    if gas > 0xFFFF:
        raise ValueError(f"log cost {gas} does not fit in 16 bits")
    return gas


_DYN = OpcodeInfo.DYNAMIC
_EOF = OpcodeInfo.EOF
_S = SpecId

# (opcode, gas and flags, hardfork that activates it or None)
_TABLE: tuple[tuple[int, int, SpecId | None], ...] = (
    (ops.STOP, 0, None),
    (ops.ADD, 3, None),
    (ops.MUL, 5, None),
    (ops.SUB, 3, None),
    (ops.DIV, 5, None),
    (ops.SDIV, 5, None),
    (ops.MOD, 5, None),
    (ops.SMOD, 5, None),
    (ops.ADDMOD, 8, None),
    (ops.MULMOD, 8, None),
    (ops.EXP, 10 | _DYN, None),
    (ops.SIGNEXTEND, 5, None),
    (ops.LT, 3, None),
    (ops.GT, 3, None),
    (ops.SLT, 3, None),
    (ops.SGT, 3, None),
    (ops.EQ, 3, None),
    (ops.ISZERO, 3, None),
    (ops.AND, 3, None),
    (ops.OR, 3, None),
    (ops.XOR, 3, None),
    (ops.NOT, 3, None),
    (ops.BYTE, 3, None),
    (ops.SHL, 3, _S.CONSTANTINOPLE),
    (ops.SHR, 3, _S.CONSTANTINOPLE),
    (ops.SAR, 3, _S.CONSTANTINOPLE),
    (ops.KECCAK256, 30 | _DYN, None),
    (ops.ADDRESS, 2, None),
    (ops.BALANCE, _DYN, None),
    (ops.ORIGIN, 2, None),
    (ops.CALLER, 2, None),
    (ops.CALLVALUE, 2, None),
    (ops.CALLDATALOAD, 3, None),
    (ops.CALLDATASIZE, 2, None),
    (ops.CALLDATACOPY, 3 | _DYN, None),
    (ops.CODESIZE, 2, None),
    (ops.CODECOPY, 3 | _DYN, None),
    (ops.GASPRICE, 2, None),
    (ops.EXTCODESIZE, _DYN, None),
    (ops.EXTCODECOPY, _DYN, None),
    (ops.RETURNDATASIZE, 2, _S.BYZANTIUM),
    (ops.RETURNDATACOPY, 3 | _DYN, _S.BYZANTIUM),
    (ops.EXTCODEHASH, _DYN, _S.CONSTANTINOPLE),
    (ops.BLOCKHASH, 20, None),
    (ops.COINBASE, 2, None),
    (ops.TIMESTAMP, 2, None),
    (ops.NUMBER, 2, None),
    (ops.DIFFICULTY, 2, None),
    (ops.GASLIMIT, 2, None),
    (ops.CHAINID, 2, _S.ISTANBUL),
    (ops.SELFBALANCE, 5, _S.ISTANBUL),
    (ops.BASEFEE, 2, _S.LONDON),
    (ops.BLOBHASH, 3, _S.CANCUN),
    (ops.BLOBBASEFEE, 2, _S.CANCUN),
    (ops.POP, 2, None),
    (ops.MLOAD, 3 | _DYN, None),
    (ops.MSTORE, 3 | _DYN, None),
    (ops.MSTORE8, 3 | _DYN, None),
    (ops.SLOAD, _DYN, None),
    (ops.SSTORE, _DYN, None),
    (ops.JUMP, 8, None),
    (ops.JUMPI, 10, None),
    (ops.PC, 2, None),
    (ops.MSIZE, 2, None),
    (ops.GAS, 2, None),
    (ops.JUMPDEST, 1, None),
    (ops.TLOAD, 100, _S.CANCUN),
    (ops.TSTORE, 100, _S.CANCUN),
    (ops.MCOPY, 3 | _DYN, _S.CANCUN),
    (ops.PUSH0, 2, _S.SHANGHAI),
    *((op, 3, None) for op in range(ops.PUSH1, ops.PUSH32 + 1)),
    *((op, 3, None) for op in range(ops.DUP1, ops.DUP16 + 1)),
    *((op, 3, None) for op in range(ops.SWAP1, ops.SWAP16 + 1)),
    *((ops.LOG0 + n, log_cost(n) | _DYN, None) for n in range(5)),
    (ops.DATALOAD, 4 | _EOF, _S.PRAGUE),
    (ops.DATALOADN, 3 | _EOF, _S.PRAGUE),
    (ops.DATASIZE, 2 | _EOF, _S.PRAGUE),
    (ops.DATACOPY, 3 | _DYN | _EOF, _S.PRAGUE),
    (ops.RJUMP, 2 | _EOF, _S.PRAGUE),
    (ops.RJUMPI, 4 | _EOF, _S.PRAGUE),
    (ops.RJUMPV, 4 | _EOF, _S.PRAGUE),
    (ops.CALLF, 5 | _EOF, _S.PRAGUE),
    (ops.RETF, 3 | _EOF, _S.PRAGUE),
    (ops.JUMPF, 5 | _EOF, _S.PRAGUE),
    (ops.DUPN, 3 | _EOF, _S.PRAGUE),
    (ops.SWAPN, 3 | _EOF, _S.PRAGUE),
    (ops.EXCHANGE, 3 | _EOF, _S.PRAGUE),
    (ops.EOFCREATE, _DYN | _EOF, _S.PRAGUE),
    (ops.RETURNCONTRACT, _DYN | _EOF, _S.PRAGUE),
    (ops.CREATE, _DYN, None),
    (ops.CALL, _DYN, None),
    (ops.CALLCODE, _DYN, None),
    (ops.RETURN, _DYN, None),
    (ops.DELEGATECALL, _DYN, _S.HOMESTEAD),
    (ops.CREATE2, _DYN, _S.PETERSBURG),
    (ops.RETURNDATALOAD, 3 | _EOF, _S.PRAGUE),
    (ops.EXTCALL, _DYN | _EOF, _S.PRAGUE),
    (ops.EXTDELEGATECALL, _DYN | _EOF, _S.PRAGUE),
    (ops.STATICCALL, _DYN, _S.BYZANTIUM),
    (ops.EXTSTATICCALL, _DYN | _EOF, _S.PRAGUE),
    (ops.REVERT, _DYN, _S.BYZANTIUM),
    (ops.INVALID, 0, None),
    (ops.SELFDESTRUCT, _DYN, None),
)


@lru_cache(maxsize=None)
def _info_bits(spec_id: SpecId) -> tuple[int, ...]:
    rules = _RULES_OF.get(spec_id, spec_id)
    bits = [OpcodeInfo.UNKNOWN] * 256
    for opcode, gas, since in _TABLE:
        if since is not None and rules < since:
            gas |= OpcodeInfo.DISABLED
        bits[opcode] = gas
    return tuple(bits)


def op_info_map(spec_id: SpecId) -> tuple[OpcodeInfo, ...]:
    """Return the 256-entry opcode info table for ``spec_id``."""
    return tuple(OpcodeInfo(bits) for bits in _info_bits(SpecId(spec_id)))