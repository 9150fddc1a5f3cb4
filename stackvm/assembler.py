"""
Assembler: turns stack VM source text into a resolved, immutable Program.

Source format
-------------
One instruction per line, tokens separated by whitespace::

    Push 10         -- trailing comments start with "--"
    label loop      -- jump target, compiles to Noop
    JNE loop
    Proc square     -- compiles to a Jump past the matching End
        GetArg 0
        ...
        Ret
    End             -- compiles to Noop
    Call square     -- resolves to the instruction after "Proc square"

Blank and comment lines compile to Noop, so instruction indices always match
zero-based source line numbers.

Resolution runs in two passes: the first collects label and procedure
addresses, the second emits instructions with every name replaced by an
absolute index.
"""

import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import structlog

from .config import COMMENT_PREFIX, SOURCE_ENCODING
from .core.instruction import OPCODES_BY_MNEMONIC, Instruction, Opcode, get_operand_kind
from .core.program import Program
from .errors import AssemblyError, InvalidInstructionError

logger = structlog.get_logger(__name__)

LABEL_KEYWORD = "label"
PROC_KEYWORD = "Proc"
END_KEYWORD = "End"

INTEGER_RE = re.compile(r"[+-]?[0-9]+\Z", re.ASCII)


def tokenize_line(line: str) -> List[str]:
    """Split a source line into tokens, dropping any trailing comment."""
    tokens = []
    for token in line.split():
        if token.startswith(COMMENT_PREFIX):
            break
        tokens.append(token)
    return tokens


def _parse_int(token: str, line_number: int, line: str) -> int:
    # Plain ASCII decimal only, no digit separators
    if not INTEGER_RE.match(token):
        raise AssemblyError(f"Expected an integer, got {token!r}", line_number, line)
    return int(token)


class Assembler:
    """Two-pass assembler. One instance per source text."""

    def __init__(self, source: str):
        self.lines = source.splitlines()
        self.token_lines = [tokenize_line(line) for line in self.lines]
        self.labels: Dict[str, int] = {}
        # Procedure name -> (Proc line index, End line index)
        self.procedures: Dict[str, Tuple[int, int]] = {}

    def assemble(self) -> Program:
        self._collect_names()
        instructions = [self._emit(ip, tokens) for ip, tokens in enumerate(self.token_lines)]
        entry_points = {name: start + 1 for name, (start, _) in self.procedures.items()}
        logger.debug(
            "Assembled program",
            instructions=len(instructions),
            labels=len(self.labels),
            procedures=len(self.procedures),
        )
        return Program(tuple(instructions), labels=self.labels, procedures=entry_points)

    # --- Pass 1: names ---

    def _collect_names(self):
        open_proc: Optional[Tuple[str, int]] = None

        for ip, tokens in enumerate(self.token_lines):
            if not tokens:
                continue
            line_number = ip + 1
            keyword = tokens[0]

            if keyword == LABEL_KEYWORD:
                name = self._expect_name(tokens, ip)
                if name in self.labels:
                    raise AssemblyError(f"Duplicate label {name!r}", line_number, self.lines[ip])
                self.labels[name] = ip

            elif keyword == PROC_KEYWORD:
                name = self._expect_name(tokens, ip)
                if open_proc is not None:
                    raise AssemblyError(
                        f"Procedure {name!r} nested inside {open_proc[0]!r}", line_number, self.lines[ip]
                    )
                if name in self.procedures:
                    raise AssemblyError(f"Duplicate procedure {name!r}", line_number, self.lines[ip])
                open_proc = (name, ip)

            elif keyword == END_KEYWORD:
                self._expect_arity(tokens, 0, ip)
                if open_proc is None:
                    raise AssemblyError("End without a matching Proc", line_number, self.lines[ip])
                name, start = open_proc
                self.procedures[name] = (start, ip)
                open_proc = None

        if open_proc is not None:
            name, start = open_proc
            raise AssemblyError(f"Procedure {name!r} has no End", start + 1, self.lines[start])

    # --- Pass 2: instructions ---

    def _emit(self, ip: int, tokens: List[str]) -> Instruction:
        if not tokens:
            return Instruction(Opcode.NOOP)

        line_number = ip + 1
        line = self.lines[ip]
        keyword = tokens[0]

        if keyword in (LABEL_KEYWORD, END_KEYWORD):
            return Instruction(Opcode.NOOP)
        if keyword == PROC_KEYWORD:
            # Skip the body when execution reaches the declaration
            _, end = self.procedures[tokens[1]]
            return Instruction(Opcode.JUMP, end + 1)

        opcode = OPCODES_BY_MNEMONIC.get(keyword)
        if opcode is None:
            raise AssemblyError(f"Unknown instruction {keyword!r}", line_number, line)

        kind = get_operand_kind(opcode)
        if kind is None:
            self._expect_arity(tokens, 0, ip)
            return Instruction(opcode)

        self._expect_arity(tokens, 1, ip)
        operand_token = tokens[1]
        if opcode == Opcode.CALL:
            operand = self._resolve_procedure(operand_token, ip)
        elif kind == "target":
            operand = self._resolve_label(operand_token, ip)
        else:
            operand = _parse_int(operand_token, line_number, line)

        try:
            return Instruction(opcode, operand)
        except InvalidInstructionError as e:
            raise AssemblyError(str(e), line_number, line) from e

    # --- Helpers ---

    def _expect_arity(self, tokens: List[str], count: int, ip: int):
        if len(tokens) - 1 != count:
            noun = "operand" if count == 1 else "operands"
            raise AssemblyError(
                f"{tokens[0]} expects {count} {noun}, got {len(tokens) - 1}", ip + 1, self.lines[ip]
            )

    def _expect_name(self, tokens: List[str], ip: int) -> str:
        self._expect_arity(tokens, 1, ip)
        return tokens[1]

    def _resolve_label(self, name: str, ip: int) -> int:
        if name not in self.labels:
            raise AssemblyError(f"Undefined label {name!r}", ip + 1, self.lines[ip])
        return self.labels[name]

    def _resolve_procedure(self, name: str, ip: int) -> int:
        if name not in self.procedures:
            raise AssemblyError(f"Undefined procedure {name!r}", ip + 1, self.lines[ip])
        start, _ = self.procedures[name]
        return start + 1


def assemble(source: str) -> Program:
    """Assemble source text into a Program."""
    return Assembler(source).assemble()


def assemble_file(path: Union[str, Path]) -> Program:
    """Read and assemble a source file."""
    path = Path(path)
    logger.debug("Reading program", path=str(path))
    source = path.read_text(encoding=SOURCE_ENCODING)
    try:
        return assemble(source)
    except AssemblyError as e:
        logger.error("Assembly failed", path=str(path), line=e.line_number, error=e.message)
        raise
