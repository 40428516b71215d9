"""EVM bytecode decoding and analysis: opcode tables, EOF containers, jumps, dead code, sections."""

__version__ = "0.1.0"

__all__ = ["bytecode", "eof", "info", "instructions", "opcode", "ops", "sections"]