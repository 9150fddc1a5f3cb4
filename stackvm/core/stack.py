# core/stack.py
from typing import Iterator, List, Optional, Tuple

from ..errors import IndexOutOfRange, StackUnderflow


class OperandStack:
    """
    Growable stack of signed integers.

    Indexed access counts from the bottom (slot 0). Negative or past-the-end
    indices fault; they are never wrapped or zero-filled.
    """

    def __init__(self, values: Optional[List[int]] = None):
        self._values = list(values) if values is not None else []

    def push(self, value: int):
        self._values.append(value)

    def pop(self) -> int:
        if not self._values:
            raise StackUnderflow("popped an empty stack")
        return self._values.pop()

    def peek(self) -> int:
        if not self._values:
            raise StackUnderflow("peeked an empty stack")
        return self._values[-1]

    def _check_index(self, index: int):
        if index < 0 or index >= len(self._values):
            raise IndexOutOfRange(
                f"slot {index} does not exist in a stack of {len(self._values)} values"
            )

    def get(self, index: int) -> int:
        self._check_index(index)
        return self._values[index]

    def set(self, index: int, value: int):
        self._check_index(index)
        self._values[index] = value

    def snapshot(self) -> Tuple[int, ...]:
        return tuple(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[int]:
        return iter(self._values)

    def __repr__(self) -> str:
        return repr(self._values)
