# evmflow

Decoding and static analysis of EVM bytecode, both legacy and EOF.

evmflow splits raw contract code into a list of instructions. For each
instruction it records the flags, the base gas and the stack effect. It then
runs the analysis passes that a compiler runs before it generates code:

- static jump resolution: a `PUSH<N>` directly followed by `JUMP`/`JUMPI`
- dead-code marking between diverging instructions and reachable `JUMPDEST`s
- detection of instructions that may suspend execution (`CALL*`, `CREATE*`,
  and their EOF counterparts)
- for EOF, tracking which `CALLF` instructions reach each code section
  (following `JUMPF`), and marking `RJUMP*` targets
- grouping into sections, where each section head carries the summed base gas,
  the stack height it needs and its largest stack growth

## Installation

```
pip install evmflow
```

The package has no runtime dependencies and needs Python 3.10 or newer.

## Modules

- `evmflow.ops`: opcode byte constants (`ops.ADD`, `ops.JUMPDEST`, ...),
  `opcode_spec(opcode)`, which returns an `OpcodeSpec` with the name, the stack
  inputs and outputs and the immediate size, or None for an unassigned byte,
  and `opcode_name(opcode)`.
- `evmflow.info`: the `SpecId` hardforks, `OpcodeInfo` (base gas plus the
  dynamic, disabled, EOF-only and unknown flags), `op_info_map(spec_id)` and
  `log_cost(n)`.
- `evmflow.opcode`: `Opcode`, `OpcodesIter`, `min_imm_len`, `stack_io` and
  `format_bytecode`.
- `evmflow.eof`: `Eof`, `TypesSection` and `EofDecodeError`.
- `evmflow.instructions`: `InstData` and `InstFlags`.
- `evmflow.sections`: `Section` and `SectionAnalysis`.
- `evmflow.bytecode`: `Bytecode` and `AnalysisError`.

## Opcode tables

```python
from evmflow.info import SpecId, op_info_map

info = op_info_map(SpecId.MERGE)[0x5F]       # PUSH0
info.is_disabled()                           # True: PUSH0 arrives in Shanghai
op_info_map(SpecId.CANCUN)[0x01].base_gas()  # 3
```

## Iterating and formatting

```python
from evmflow.info import SpecId
from evmflow.opcode import OpcodesIter, format_bytecode

code = bytes([0x5F, 0x60, 0x69, 0x61, 0x01, 0x02])
format_bytecode(code, SpecId.CANCUN)
# 'PUSH0 PUSH1 0x69 PUSH2 0x0102'

for pc, op in OpcodesIter(code, SpecId.CANCUN).with_pc():
    print(pc, op)
```

If an immediate runs past the end of the code, it is reported as `None`. An
unassigned byte prints as `UNKNOWN(0x..)`. From Prague on, `format_bytecode`
decodes code that starts with the EOF magic as a container.

## Analysis

```python
from evmflow.bytecode import Bytecode
from evmflow.info import SpecId

bc = Bytecode(bytes([0x60, 0x03, 0x56, 0x5B, 0x60, 0x45]), SpecId.CANCUN, None)
bc.analyze()
for ic, inst in bc.iter_insts():
    print(ic, inst.to_op(), inst.flags, inst.section)
print(bc)  # table of instruction index, pc, opcode and instruction data
```

When legacy code does not end in a diverging instruction, a trailing `STOP`
is appended. After `analyze()`, `has_dynamic_jumps` and `may_suspend` are set.
`op_block_name(inst, name)` gives a readable basic-block name, and passing
`None` names the entry block.

## EOF containers

```python
from evmflow.bytecode import Bytecode
from evmflow.eof import Eof
from evmflow.info import SpecId

eof = Eof.from_sections([bytes([0x60, 0x45, 0x00])], [], b"")
assert Eof.decode(eof.encode()) == eof

bc = Bytecode(b"", SpecId.PRAGUE_EOF, eof)   # code is taken from the container
bc.analyze()
```

When you pass an EOF container, the code that is analysed is the
concatenation of its code sections. `eof_section_pc`, `eof_section_inst` and
`pc_to_eof_section` map between sections and positions. `iter_rjump_targets`
and `iter_rjump_target_insts` list the targets of relative jumps, and
`eof_section_called_by(section)` lists the `CALLF` instructions that reach a
section.

Errors:

- `EofDecodeError` (a `ValueError`) for malformed containers.
- `AnalysisError` for bytecode that cannot be analysed: truncated
  `CALLF`/`JUMPF`/`RJUMP*` immediates, out-of-range section indices, a
  `JUMPF` into its own section, out-of-section relative jumps, or caller
  tracking that does not converge.
- `IndexError` from `pc_to_inst` for a pc that is not the start of an
  instruction.

Each pass logs through the standard `logging` module at DEBUG level, under
the `evmflow.bytecode` and `evmflow.sections` loggers.

## What it does not do

evmflow only decodes and analyses bytecode. It does not execute it, charge
dynamic gas, generate machine code or validate EOF containers beyond
decoding their layout. It has no command-line tool.

## Running the tests

```
pip install -e ".[test]"
pytest
```