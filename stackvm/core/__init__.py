from .instruction import (
    Opcode,
    Instruction,
    MNEMONICS,
    OPCODES_BY_MNEMONIC,
    OPERAND_KINDS,
    JUMP_OPCODES,
    CONTROL_OPCODES,
    get_operand_kind,
)
from .program import Program
from .stack import OperandStack
from .frames import StackFrame, CallStack

__all__ = [
    "Opcode",
    "Instruction",
    "MNEMONICS",
    "OPCODES_BY_MNEMONIC",
    "OPERAND_KINDS",
    "JUMP_OPCODES",
    "CONTROL_OPCODES",
    "get_operand_kind",
    "Program",
    "OperandStack",
    "StackFrame",
    "CallStack",
]
