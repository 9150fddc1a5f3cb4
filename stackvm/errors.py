"""
Exception hierarchy for the stack VM.

Build-time errors (bad instructions, bad programs, assembly errors) are raised
before execution starts. Runtime faults derive from VMFault and always stop
the engine.
"""

from typing import Optional


class StackVMError(Exception):
    """Base class for every error raised by stackvm."""


class InvalidInstructionError(StackVMError, ValueError):
    """An Instruction was constructed with a missing, extra or bad operand."""


class InvalidProgramError(StackVMError, ValueError):
    """A Program references a jump or call target outside its bounds."""


class AssemblyError(StackVMError):
    """Source text could not be turned into a Program."""

    def __init__(self, message: str, line_number: Optional[int] = None, line: Optional[str] = None):
        self.message = message
        self.line_number = line_number
        self.line = line
        if line_number is not None:
            message = f"line {line_number}: {message}"
            if line is not None:
                message = f"{message}: {line.strip()!r}"
        super().__init__(message)


class VMFault(StackVMError):
    """
    A fatal runtime fault.

    The operand stack raises these without context; the engine attaches the
    instruction pointer and the faulting instruction before re-raising.
    """

    kind = "VMFault"

    def __init__(self, message: str, ip: Optional[int] = None, instruction=None):
        self.message = message
        self.ip = ip
        self.instruction = instruction
        super().__init__(message)

    def attach(self, ip: int, instruction) -> "VMFault":
        self.ip = ip
        self.instruction = instruction
        return self

    def __str__(self) -> str:
        if self.ip is None:
            return f"{self.kind}: {self.message}"
        return f"{self.kind} at ip={self.ip} ({self.instruction}): {self.message}"


class StackUnderflow(VMFault):
    kind = "StackUnderflow"


class IndexOutOfRange(VMFault):
    kind = "IndexOutOfRange"


class DivisionByZero(VMFault):
    kind = "DivisionByZero"


class CallStackUnderflow(VMFault):
    kind = "CallStackUnderflow"


class InvalidCharacter(VMFault):
    kind = "InvalidCharacter"
