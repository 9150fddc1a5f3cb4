"""
A stack-based bytecode interpreter with label jumps, indexed stack access
and procedure calls over a shared operand stack.
"""

__version__ = "0.1.0"

# Instruction model
from .core import (
    Opcode,
    Instruction,
    Program,
    OperandStack,
    StackFrame,
    CallStack,
)

# Execution
from .engine import Engine, ExecutionState, ExecutionResult, ExecutionStatus, run_program

# Source handling
from .assembler import Assembler, assemble, assemble_file
from .disassembler import disassemble, format_instruction

# Errors
from .errors import (
    StackVMError,
    InvalidInstructionError,
    InvalidProgramError,
    AssemblyError,
    VMFault,
    StackUnderflow,
    IndexOutOfRange,
    DivisionByZero,
    CallStackUnderflow,
    InvalidCharacter,
)

from .logging_config import configure_default_logging

# Keep library log output off stdout when the host never configures logging
configure_default_logging()


__all__ = [
    # Instruction model
    "Opcode",
    "Instruction",
    "Program",
    "OperandStack",
    "StackFrame",
    "CallStack",
    # Execution
    "Engine",
    "ExecutionState",
    "ExecutionResult",
    "ExecutionStatus",
    "run_program",
    # Source handling
    "Assembler",
    "assemble",
    "assemble_file",
    "disassemble",
    "format_instruction",
    # Errors
    "StackVMError",
    "InvalidInstructionError",
    "InvalidProgramError",
    "AssemblyError",
    "VMFault",
    "StackUnderflow",
    "IndexOutOfRange",
    "DivisionByZero",
    "CallStackUnderflow",
    "InvalidCharacter",
]
