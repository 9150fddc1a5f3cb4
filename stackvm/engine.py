"""
Fetch-decode-execute loop for resolved stack VM programs.

Calling convention
------------------
Call records the current stack length as the new frame offset. Arguments are
whatever the caller pushed just before the Call and are addressed downward
from that offset::

      GetArg 2    GetArg 1    GetArg 0  |  (callee values)
    [    1,          3,          2,     |     5,     7     ]
                                        ^ frame_offset

Nothing is torn down automatically: the callee must pop what it pushed
before Ret, and an unbalanced procedure shifts every later GetArg/SetArg.
Get/Set are independent of the frame and always count from the stack bottom.
"""

import dataclasses
import enum
import sys
from typing import Optional, TextIO, Tuple

import structlog

from .core.frames import CallStack, StackFrame
from .core.instruction import JUMP_CONDITIONS, Instruction, Opcode
from .core.program import Program
from .core.stack import OperandStack
from .errors import DivisionByZero, IndexOutOfRange, InvalidCharacter, VMFault

logger = structlog.get_logger(__name__)


class ExecutionStatus(enum.Enum):
    RUNNING = "running"
    HALTED = "halted"
    FAULTED = "faulted"


class ExecutionState:
    """Mutable machine state for a single run."""

    def __init__(self):
        self.ip = 0
        self.stack = OperandStack()
        self.call_stack = CallStack()
        self.frame_offset = 0
        self.steps = 0

    def arg_index(self, i: int) -> int:
        """Absolute stack slot of argument ``i`` in the current frame."""
        return self.frame_offset - 1 - i

    def __repr__(self) -> str:
        return (
            f"ExecutionState(ip={self.ip}, frame_offset={self.frame_offset}, "
            f"depth={self.call_stack.depth}, stack={self.stack!r})"
        )


@dataclasses.dataclass(frozen=True)
class ExecutionResult:
    """Terminal outcome of Engine.run()."""

    status: ExecutionStatus
    steps: int
    stack: Tuple[int, ...]
    call_depth: int
    fault: Optional[VMFault] = None

    @property
    def halted(self) -> bool:
        return self.status is ExecutionStatus.HALTED

    @property
    def faulted(self) -> bool:
        return self.status is ExecutionStatus.FAULTED

    @property
    def fault_kind(self) -> Optional[str]:
        return self.fault.kind if self.fault is not None else None


def truncating_div(a: int, b: int) -> int:
    """Integer division rounding toward zero. ``b`` must be non-zero."""
    quotient = abs(a) // abs(b)
    return quotient if (a < 0) == (b < 0) else -quotient


class Engine:
    def __init__(self, program: Program, stdout: Optional[TextIO] = None, trace: bool = False):
        self.program = program
        self.stdout = stdout
        self.trace = trace
        self.state = ExecutionState()
        self.status = ExecutionStatus.RUNNING
        self.fault: Optional[VMFault] = None
        self.log = logger.bind(program_size=len(program))

    @property
    def out(self) -> TextIO:
        # Resolved lazily so a replaced sys.stdout (pytest capsys) is honoured
        return self.stdout if self.stdout is not None else sys.stdout

    def reset(self):
        self.state = ExecutionState()
        self.status = ExecutionStatus.RUNNING
        self.fault = None

    def step(self) -> bool:
        """
        Execute one instruction.

        Returns True while the program is still running and False once the
        instruction pointer has moved past the last instruction. Faults are
        raised with the faulting ip and instruction attached; the engine is
        left FAULTED.
        """
        if self.status is not ExecutionStatus.RUNNING:
            return False

        state = self.state
        if state.ip >= len(self.program):
            self.status = ExecutionStatus.HALTED
            return False

        ip = state.ip
        instr = self.program[ip]
        if self.trace:
            self.log.debug(
                "step",
                ip=ip,
                instruction=str(instr),
                frame_offset=state.frame_offset,
                stack=state.stack.snapshot(),
            )

        try:
            next_ip = self._execute(instr, state)
        except VMFault as fault:
            fault.attach(ip, instr)
            self.status = ExecutionStatus.FAULTED
            self.fault = fault
            raise

        state.ip = ip + 1 if next_ip is None else next_ip
        state.steps += 1
        if state.ip >= len(self.program):
            self.status = ExecutionStatus.HALTED
            return False
        return True

    def run(self) -> ExecutionResult:
        """Run the program from a fresh state to halt or fault."""
        self.reset()
        self.log.info("Starting execution")
        try:
            while self.step():
                pass
        except VMFault as fault:
            self.log.error(
                "Execution faulted",
                fault=fault.kind,
                ip=fault.ip,
                instruction=str(fault.instruction),
                reason=fault.message,
                steps=self.state.steps,
                call_depth=self.state.call_stack.depth,
            )
        else:
            self.log.info(
                "Execution halted",
                steps=self.state.steps,
                stack_size=len(self.state.stack),
                call_depth=self.state.call_stack.depth,
            )
        return ExecutionResult(
            status=self.status,
            steps=self.state.steps,
            stack=self.state.stack.snapshot(),
            call_depth=self.state.call_stack.depth,
            fault=self.fault,
        )

    def _execute(self, instr: Instruction, state: ExecutionState) -> Optional[int]:
        """Apply one instruction. Returns the new ip, or None to fall through."""
        opcode = instr.opcode
        stack = state.stack

        if opcode == Opcode.NOOP:
            pass
        elif opcode == Opcode.PUSH:
            stack.push(instr.operand)
        elif opcode == Opcode.POP:
            stack.pop()

        # Arithmetic: the second value popped is the left operand
        elif opcode == Opcode.ADD:
            b, a = stack.pop(), stack.pop()
            stack.push(a + b)
        elif opcode == Opcode.SUB:
            b, a = stack.pop(), stack.pop()
            stack.push(a - b)
        elif opcode == Opcode.MUL:
            b, a = stack.pop(), stack.pop()
            stack.push(a * b)
        elif opcode == Opcode.DIV:
            b, a = stack.pop(), stack.pop()
            if b == 0:
                raise DivisionByZero(f"{a} / 0")
            stack.push(truncating_div(a, b))
        elif opcode == Opcode.INCR:
            stack.push(stack.pop() + 1)
        elif opcode == Opcode.DECR:
            stack.push(stack.pop() - 1)

        # Control flow
        elif opcode == Opcode.JUMP:
            return instr.operand
        elif opcode in JUMP_CONDITIONS:
            if JUMP_CONDITIONS[opcode](stack.pop()):
                return instr.operand

        # Absolute addressing
        elif opcode == Opcode.GET:
            stack.push(stack.get(instr.operand))
        elif opcode == Opcode.SET:
            value = stack.pop()
            stack.set(instr.operand, value)

        # Frame-relative addressing
        elif opcode == Opcode.GETARG:
            stack.push(stack.get(self._arg_slot(instr.operand, state)))
        elif opcode == Opcode.SETARG:
            value = stack.pop()
            stack.set(self._arg_slot(instr.operand, state), value)

        # Procedures
        elif opcode == Opcode.CALL:
            state.call_stack.push(StackFrame(return_ip=state.ip + 1, saved_offset=state.frame_offset))
            state.frame_offset = len(stack)
            return instr.operand
        elif opcode == Opcode.RET:
            frame = state.call_stack.pop()
            state.frame_offset = frame.saved_offset
            return frame.return_ip

        # Output
        elif opcode == Opcode.PRINT:
            self.out.write(str(stack.peek()))
        elif opcode == Opcode.PRINTC:
            value = stack.peek()
            if not 0 <= value <= sys.maxunicode or 0xD800 <= value <= 0xDFFF:
                raise InvalidCharacter(f"{value} is not a valid code point")
            self.out.write(chr(value))
        elif opcode == Opcode.PRINTSTACK:
            self.out.write(f"{stack!r}\n")
        else:
            raise ValueError(f"Unhandled opcode: {opcode!r}")

        return None

    @staticmethod
    def _arg_slot(i: int, state: ExecutionState) -> int:
        slot = state.arg_index(i)
        if slot < 0:
            raise IndexOutOfRange(
                f"argument {i} is below the stack bottom (frame offset {state.frame_offset})"
            )
        return slot


def run_program(program: Program, stdout: Optional[TextIO] = None, trace: bool = False) -> ExecutionResult:
    """Run ``program`` on a fresh Engine and return its terminal result."""
    return Engine(program, stdout=stdout, trace=trace).run()
