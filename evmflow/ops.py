"""EVM opcode byte values and their static stack and immediate layout."""

from __future__ import annotations

from dataclasses import dataclass

STOP = 0x00
ADD = 0x01
MUL = 0x02
SUB = 0x03
DIV = 0x04
SDIV = 0x05
MOD = 0x06
SMOD = 0x07
ADDMOD = 0x08
MULMOD = 0x09
EXP = 0x0A
SIGNEXTEND = 0x0B

LT = 0x10
GT = 0x11
SLT = 0x12
SGT = 0x13
EQ = 0x14
ISZERO = 0x15
AND = 0x16
OR = 0x17
XOR = 0x18
NOT = 0x19
BYTE = 0x1A
SHL = 0x1B
SHR = 0x1C
SAR = 0x1D

KECCAK256 = 0x20

ADDRESS = 0x30
BALANCE = 0x31
ORIGIN = 0x32
CALLER = 0x33
CALLVALUE = 0x34
CALLDATALOAD = 0x35
CALLDATASIZE = 0x36
CALLDATACOPY = 0x37
CODESIZE = 0x38
CODECOPY = 0x39
GASPRICE = 0x3A
EXTCODESIZE = 0x3B
EXTCODECOPY = 0x3C
RETURNDATASIZE = 0x3D
RETURNDATACOPY = 0x3E
EXTCODEHASH = 0x3F

BLOCKHASH = 0x40
COINBASE = 0x41
TIMESTAMP = 0x42
NUMBER = 0x43
DIFFICULTY = 0x44
GASLIMIT = 0x45
CHAINID = 0x46
SELFBALANCE = 0x47
BASEFEE = 0x48
BLOBHASH = 0x49
BLOBBASEFEE = 0x4A

POP = 0x50
MLOAD = 0x51
MSTORE = 0x52
MSTORE8 = 0x53
SLOAD = 0x54
SSTORE = 0x55
JUMP = 0x56
JUMPI = 0x57
PC = 0x58
MSIZE = 0x59
GAS = 0x5A
JUMPDEST = 0x5B
TLOAD = 0x5C
TSTORE = 0x5D
MCOPY = 0x5E

PUSH0 = 0x5F
PUSH1 = 0x60
PUSH2 = 0x61
PUSH3 = 0x62
PUSH4 = 0x63
PUSH5 = 0x64
PUSH6 = 0x65
PUSH7 = 0x66
PUSH8 = 0x67
PUSH9 = 0x68
PUSH10 = 0x69
PUSH11 = 0x6A
PUSH12 = 0x6B
PUSH13 = 0x6C
PUSH14 = 0x6D
PUSH15 = 0x6E
PUSH16 = 0x6F
PUSH17 = 0x70
PUSH18 = 0x71
PUSH19 = 0x72
PUSH20 = 0x73
PUSH21 = 0x74
PUSH22 = 0x75
PUSH23 = 0x76
PUSH24 = 0x77
PUSH25 = 0x78
PUSH26 = 0x79
PUSH27 = 0x7A
PUSH28 = 0x7B
PUSH29 = 0x7C
PUSH30 = 0x7D
PUSH31 = 0x7E
PUSH32 = 0x7F

DUP1 = 0x80
DUP2 = 0x81
DUP3 = 0x82
DUP4 = 0x83
DUP5 = 0x84
DUP6 = 0x85
DUP7 = 0x86
DUP8 = 0x87
DUP9 = 0x88
DUP10 = 0x89
DUP11 = 0x8A
DUP12 = 0x8B
DUP13 = 0x8C
DUP14 = 0x8D
DUP15 = 0x8E
DUP16 = 0x8F

SWAP1 = 0x90
SWAP2 = 0x91
SWAP3 = 0x92
SWAP4 = 0x93
SWAP5 = 0x94
SWAP6 = 0x95
SWAP7 = 0x96
SWAP8 = 0x97
SWAP9 = 0x98
SWAP10 = 0x99
SWAP11 = 0x9A
SWAP12 = 0x9B
SWAP13 = 0x9C
SWAP14 = 0x9D
SWAP15 = 0x9E
SWAP16 = 0x9F

LOG0 = 0xA0
LOG1 = 0xA1
LOG2 = 0xA2
LOG3 = 0xA3
LOG4 = 0xA4

DATALOAD = 0xD0
DATALOADN = 0xD1
DATASIZE = 0xD2
DATACOPY = 0xD3

RJUMP = 0xE0
RJUMPI = 0xE1
RJUMPV = 0xE2
CALLF = 0xE3
RETF = 0xE4
JUMPF = 0xE5
DUPN = 0xE6
SWAPN = 0xE7
EXCHANGE = 0xE8
EOFCREATE = 0xEC
RETURNCONTRACT = 0xEE

CREATE = 0xF0
CALL = 0xF1
CALLCODE = 0xF2
RETURN = 0xF3
DELEGATECALL = 0xF4
CREATE2 = 0xF5
RETURNDATALOAD = 0xF7
EXTCALL = 0xF8
EXTDELEGATECALL = 0xF9
STATICCALL = 0xFA
EXTSTATICCALL = 0xFB
REVERT = 0xFD
INVALID = 0xFE
SELFDESTRUCT = 0xFF


@dataclass(frozen=True)
class OpcodeSpec:
    """Static description of a known opcode."""

    name: str
    inputs: int
    outputs: int
    immediate_size: int = 0


_specs: list[OpcodeSpec | None] = [None] * 256


def _define(opcode: int, name: str, inputs: int, outputs: int, immediate_size: int = 0) -> None:
    _specs[opcode] = OpcodeSpec(name, inputs, outputs, immediate_size)


_define(STOP, "STOP", 0, 0)
_define(ADD, "ADD", 2, 1)
_define(MUL, "MUL", 2, 1)
_define(SUB, "SUB", 2, 1)
_define(DIV, "DIV", 2, 1)
_define(SDIV, "SDIV", 2, 1)
_define(MOD, "MOD", 2, 1)
_define(SMOD, "SMOD", 2, 1)
_define(ADDMOD, "ADDMOD", 3, 1)
_define(MULMOD, "MULMOD", 3, 1)
_define(EXP, "EXP", 2, 1)
_define(SIGNEXTEND, "SIGNEXTEND", 2, 1)

_define(LT, "LT", 2, 1)
_define(GT, "GT", 2, 1)
_define(SLT, "SLT", 2, 1)
_define(SGT, "SGT", 2, 1)
_define(EQ, "EQ", 2, 1)
_define(ISZERO, "ISZERO", 1, 1)
_define(AND, "AND", 2, 1)
_define(OR, "OR", 2, 1)
_define(XOR, "XOR", 2, 1)
_define(NOT, "NOT", 1, 1)
_define(BYTE, "BYTE", 2, 1)
_define(SHL, "SHL", 2, 1)
_define(SHR, "SHR", 2, 1)
_define(SAR, "SAR", 2, 1)

_define(KECCAK256, "KECCAK256", 2, 1)

_define(ADDRESS, "ADDRESS", 0, 1)
_define(BALANCE, "BALANCE", 1, 1)
_define(ORIGIN, "ORIGIN", 0, 1)
_define(CALLER, "CALLER", 0, 1)
_define(CALLVALUE, "CALLVALUE", 0, 1)
_define(CALLDATALOAD, "CALLDATALOAD", 1, 1)
_define(CALLDATASIZE, "CALLDATASIZE", 0, 1)
_define(CALLDATACOPY, "CALLDATACOPY", 3, 0)
_define(CODESIZE, "CODESIZE", 0, 1)
_define(CODECOPY, "CODECOPY", 3, 0)
_define(GASPRICE, "GASPRICE", 0, 1)
_define(EXTCODESIZE, "EXTCODESIZE", 1, 1)
_define(EXTCODECOPY, "EXTCODECOPY", 4, 0)
_define(RETURNDATASIZE, "RETURNDATASIZE", 0, 1)
_define(RETURNDATACOPY, "RETURNDATACOPY", 3, 0)
_define(EXTCODEHASH, "EXTCODEHASH", 1, 1)

_define(BLOCKHASH, "BLOCKHASH", 1, 1)
_define(COINBASE, "COINBASE", 0, 1)
_define(TIMESTAMP, "TIMESTAMP", 0, 1)
_define(NUMBER, "NUMBER", 0, 1)
_define(DIFFICULTY, "DIFFICULTY", 0, 1)
_define(GASLIMIT, "GASLIMIT", 0, 1)
_define(CHAINID, "CHAINID", 0, 1)
_define(SELFBALANCE, "SELFBALANCE", 0, 1)
_define(BASEFEE, "BASEFEE", 0, 1)
_define(BLOBHASH, "BLOBHASH", 1, 1)
_define(BLOBBASEFEE, "BLOBBASEFEE", 0, 1)

_define(POP, "POP", 1, 0)
_define(MLOAD, "MLOAD", 1, 1)
_define(MSTORE, "MSTORE", 2, 0)
_define(MSTORE8, "MSTORE8", 2, 0)
_define(SLOAD, "SLOAD", 1, 1)
_define(SSTORE, "SSTORE", 2, 0)
_define(JUMP, "JUMP", 1, 0)
_define(JUMPI, "JUMPI", 2, 0)
_define(PC, "PC", 0, 1)
_define(MSIZE, "MSIZE", 0, 1)
_define(GAS, "GAS", 0, 1)
_define(JUMPDEST, "JUMPDEST", 0, 0)
_define(TLOAD, "TLOAD", 1, 1)
_define(TSTORE, "TSTORE", 2, 0)
_define(MCOPY, "MCOPY", 3, 0)

_define(PUSH0, "PUSH0", 0, 1)
for _n in range(1, 33):
    _define(PUSH1 + _n - 1, f"PUSH{_n}", 0, 1, _n)
for _n in range(1, 17):
    _define(DUP1 + _n - 1, f"DUP{_n}", _n, _n + 1)
for _n in range(1, 17):
    _define(SWAP1 + _n - 1, f"SWAP{_n}", _n + 1, _n + 1)
for _n in range(5):
    _define(LOG0 + _n, f"LOG{_n}", 2 + _n, 0)

_define(DATALOAD, "DATALOAD", 1, 1)
_define(DATALOADN, "DATALOADN", 0, 1, 2)
_define(DATASIZE, "DATASIZE", 0, 1)
_define(DATACOPY, "DATACOPY", 3, 0)

_define(RJUMP, "RJUMP", 0, 0, 2)
_define(RJUMPI, "RJUMPI", 1, 0, 2)
_define(RJUMPV, "RJUMPV", 1, 0, 1)
_define(CALLF, "CALLF", 0, 0, 2)
_define(RETF, "RETF", 0, 0)
_define(JUMPF, "JUMPF", 0, 0, 2)
_define(DUPN, "DUPN", 0, 1, 1)
_define(SWAPN, "SWAPN", 0, 0, 1)
_define(EXCHANGE, "EXCHANGE", 0, 0, 1)
_define(EOFCREATE, "EOFCREATE", 4, 1, 1)
_define(RETURNCONTRACT, "RETURNCONTRACT", 2, 0, 1)

_define(CREATE, "CREATE", 3, 1)
_define(CALL, "CALL", 7, 1)
_define(CALLCODE, "CALLCODE", 7, 1)
_define(RETURN, "RETURN", 2, 0)
_define(DELEGATECALL, "DELEGATECALL", 6, 1)
_define(CREATE2, "CREATE2", 4, 1)
_define(RETURNDATALOAD, "RETURNDATALOAD", 1, 1)
_define(EXTCALL, "EXTCALL", 4, 1)
_define(EXTDELEGATECALL, "EXTDELEGATECALL", 3, 1)
_define(STATICCALL, "STATICCALL", 6, 1)
_define(EXTSTATICCALL, "EXTSTATICCALL", 3, 1)
_define(REVERT, "REVERT", 2, 0)
_define(INVALID, "INVALID", 0, 0)
_define(SELFDESTRUCT, "SELFDESTRUCT", 1, 0)

_SPECS: tuple[OpcodeSpec | None, ...] = tuple(_specs)
del _specs, _n


def _check_byte(opcode: int) -> int:
    if not 0 <= opcode <= 0xFF:
        raise ValueError(f"opcode out of range: {opcode}")
    return opcode


def opcode_spec(opcode: int) -> OpcodeSpec | None:
    """Return the static description of ``opcode``, or None if it is not assigned."""
    return _SPECS[_check_byte(opcode)]


def opcode_name(opcode: int) -> str:
    """Return the mnemonic of ``opcode``, or ``UNKNOWN(0x..)`` if it is not assigned."""
    spec = opcode_spec(opcode)
    if spec is None:
        return f"UNKNOWN(0x{opcode:02x})"
    return spec.name