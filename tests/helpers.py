import io
import os

from stackvm.assembler import assemble
from stackvm.core.instruction import Instruction
from stackvm.core.program import Program
from stackvm.engine import Engine

PROGRAMS_DIR = os.path.join(os.path.dirname(__file__), "..", "programs")


def make_program(*items):
    """Build a Program from (opcode, operand) tuples or bare opcodes."""
    instructions = []
    for item in items:
        if isinstance(item, tuple):
            instructions.append(Instruction(*item))
        else:
            instructions.append(Instruction(item))
    return Program(tuple(instructions))


def execute(program):
    """Run a program, returning (result, captured stdout text)."""
    out = io.StringIO()
    result = Engine(program, stdout=out).run()
    return result, out.getvalue()


def execute_source(source):
    return execute(assemble(source))
