"""Render a Program back to a readable listing."""

from typing import List, Optional

from .core.instruction import Instruction
from .core.program import Program


def format_instruction(instr: Instruction, program: Optional[Program] = None) -> str:
    """
    Format a single instruction.

    When a program is given, jump and call targets are annotated with the
    label or procedure names that resolve to them.
    """
    text = str(instr)
    if program is not None and instr.is_control:
        names = program.names_at(instr.operand)
        if names:
            text = f"{text:<16} ; -> {', '.join(names)}"
        elif instr.operand == len(program):
            text = f"{text:<16} ; -> end"
    return text


def disassemble(program: Program) -> List[str]:
    """
    Produce one listing line per instruction.

    Returns:
        Lines of the form ``"0003  JNE 7            ; -> label loop"``
    """
    width = max(4, len(str(len(program))))
    lines = []
    for ip, instr in enumerate(program):
        for name in program.names_at(ip):
            lines.append(f"{'':>{width}}  <{name}>")
        lines.append(f"{ip:0{width}d}  {format_instruction(instr, program)}")
    return lines
