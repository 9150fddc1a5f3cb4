# core/program.py
import dataclasses
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Tuple

from ..errors import InvalidProgramError
from .instruction import Instruction


def _freeze(names: Optional[Mapping[str, int]]) -> Mapping[str, int]:
    return MappingProxyType(dict(names or {}))


@dataclasses.dataclass(frozen=True)
class Program:
    """
    An immutable, fully-resolved instruction sequence indexed by instruction pointer.

    ``labels`` and ``procedures`` are kept for diagnostics only (listings, log
    context); the engine never looks names up.
    """

    instructions: Tuple[Instruction, ...]
    labels: Mapping[str, int] = dataclasses.field(default_factory=dict, hash=False, compare=False)
    procedures: Mapping[str, int] = dataclasses.field(default_factory=dict, hash=False, compare=False)

    def __post_init__(self):
        instructions = tuple(self.instructions)
        for ip, instr in enumerate(instructions):
            if not isinstance(instr, Instruction):
                raise InvalidProgramError(f"Item {ip} is not an Instruction: {instr!r}")
            # A target equal to the program length is a jump to the halt point
            if instr.is_control and instr.operand > len(instructions):
                raise InvalidProgramError(
                    f"{instr} at {ip} targets {instr.operand}, "
                    f"outside a program of {len(instructions)} instructions"
                )
        object.__setattr__(self, "instructions", instructions)
        object.__setattr__(self, "labels", _freeze(self.labels))
        object.__setattr__(self, "procedures", _freeze(self.procedures))

    def __len__(self) -> int:
        return len(self.instructions)

    def __getitem__(self, ip: int) -> Instruction:
        return self.instructions[ip]

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self.instructions)

    def names_at(self, ip: int) -> Tuple[str, ...]:
        """Labels and procedure names that resolve to ``ip``."""
        names = [f"label {name}" for name, target in self.labels.items() if target == ip]
        names += [f"proc {name}" for name, target in self.procedures.items() if target == ip]
        return tuple(names)
