"""
Opcode definitions and the immutable Instruction record.
"""

import dataclasses
from enum import IntEnum
from typing import Optional

from ..errors import InvalidInstructionError


class Opcode(IntEnum):
    """Stack VM opcodes"""

    NOOP = 0x00

    # Stack and arithmetic
    PUSH = 0x01
    POP = 0x02
    ADD = 0x03
    SUB = 0x04
    MUL = 0x05
    DIV = 0x06
    INCR = 0x07
    DECR = 0x08

    # Control flow
    JUMP = 0x10
    JE = 0x11
    JNE = 0x12
    JGT = 0x13
    JLT = 0x14
    JGE = 0x15
    JLE = 0x16

    # Indexed stack access
    GET = 0x20
    SET = 0x21
    GETARG = 0x22
    SETARG = 0x23

    # Procedures
    CALL = 0x30
    RET = 0x31

    # Output
    PRINT = 0x40
    PRINTC = 0x41
    PRINTSTACK = 0x42


# Map from opcode to the mnemonic used in source text
MNEMONICS = {
    Opcode.NOOP: "Noop",
    Opcode.PUSH: "Push",
    Opcode.POP: "Pop",
    Opcode.ADD: "Add",
    Opcode.SUB: "Sub",
    Opcode.MUL: "Mul",
    Opcode.DIV: "Div",
    Opcode.INCR: "Incr",
    Opcode.DECR: "Decr",
    Opcode.JUMP: "Jump",
    Opcode.JE: "JE",
    Opcode.JNE: "JNE",
    Opcode.JGT: "JGT",
    Opcode.JLT: "JLT",
    Opcode.JGE: "JGE",
    Opcode.JLE: "JLE",
    Opcode.GET: "Get",
    Opcode.SET: "Set",
    Opcode.GETARG: "GetArg",
    Opcode.SETARG: "SetArg",
    Opcode.CALL: "Call",
    Opcode.RET: "Ret",
    Opcode.PRINT: "Print",
    Opcode.PRINTC: "PrintC",
    Opcode.PRINTSTACK: "PrintStack",
}

OPCODES_BY_MNEMONIC = {name: code for code, name in MNEMONICS.items()}

# Operand kind per opcode:
#   "value"  - signed integer literal
#   "target" - absolute instruction index
#   "index"  - non-negative stack slot index
OPERAND_KINDS = {
    Opcode.PUSH: "value",
    Opcode.JUMP: "target",
    Opcode.JE: "target",
    Opcode.JNE: "target",
    Opcode.JGT: "target",
    Opcode.JLT: "target",
    Opcode.JGE: "target",
    Opcode.JLE: "target",
    Opcode.CALL: "target",
    Opcode.GET: "index",
    Opcode.SET: "index",
    Opcode.GETARG: "index",
    Opcode.SETARG: "index",
}

# Conditional jumps: each pops the top value and jumps when the predicate holds
JUMP_CONDITIONS = {
    Opcode.JE: lambda a: a == 0,
    Opcode.JNE: lambda a: a != 0,
    Opcode.JGT: lambda a: a > 0,
    Opcode.JLT: lambda a: a < 0,
    Opcode.JGE: lambda a: a >= 0,
    Opcode.JLE: lambda a: a <= 0,
}

JUMP_OPCODES = frozenset([Opcode.JUMP, *JUMP_CONDITIONS])

# Opcodes whose operand is an instruction index the assembler must resolve
CONTROL_OPCODES = frozenset([*JUMP_OPCODES, Opcode.CALL])


def get_operand_kind(opcode: Opcode) -> Optional[str]:
    """Return the operand kind of an opcode, or None if it takes no operand."""
    return OPERAND_KINDS.get(opcode)


@dataclasses.dataclass(frozen=True)
class Instruction:
    """
    A single resolved instruction: an opcode and at most one integer operand.

    Jump and call operands are absolute instruction indices; Get/Set/GetArg/SetArg
    operands are stack slot indices.
    """

    opcode: Opcode
    operand: Optional[int] = None

    def __post_init__(self):
        try:
            opcode = Opcode(self.opcode)
        except ValueError:
            raise InvalidInstructionError(f"Unknown opcode: {self.opcode!r}") from None
        object.__setattr__(self, "opcode", opcode)

        kind = get_operand_kind(opcode)
        name = MNEMONICS[opcode]
        if kind is None:
            if self.operand is not None:
                raise InvalidInstructionError(f"{name} takes no operand, got {self.operand!r}")
            return

        if self.operand is None:
            raise InvalidInstructionError(f"{name} requires an operand")
        # bool is an int subclass but never a meaningful operand
        if isinstance(self.operand, bool) or not isinstance(self.operand, int):
            raise InvalidInstructionError(f"{name} operand must be an integer, got {self.operand!r}")
        if kind in ("target", "index") and self.operand < 0:
            raise InvalidInstructionError(f"{name} operand must be non-negative, got {self.operand}")

    @property
    def mnemonic(self) -> str:
        return MNEMONICS[self.opcode]

    @property
    def is_control(self) -> bool:
        return self.opcode in CONTROL_OPCODES

    def __str__(self) -> str:
        if self.operand is None:
            return self.mnemonic
        return f"{self.mnemonic} {self.operand}"
