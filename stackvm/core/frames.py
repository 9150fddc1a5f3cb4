# core/frames.py
import dataclasses
from typing import List, Tuple

from ..errors import CallStackUnderflow


@dataclasses.dataclass(frozen=True)
class StackFrame:
    """
    Saved caller context pushed by Call.

    ``return_ip`` is the instruction after the Call; ``saved_offset`` is the
    caller's frame offset, restored on Ret.
    """

    return_ip: int
    saved_offset: int


class CallStack:
    """LIFO of StackFrames. Frames are never torn down implicitly."""

    def __init__(self):
        self._frames: List[StackFrame] = []

    def push(self, frame: StackFrame):
        self._frames.append(frame)

    def pop(self) -> StackFrame:
        if not self._frames:
            raise CallStackUnderflow("return with no active call")
        return self._frames.pop()

    @property
    def depth(self) -> int:
        return len(self._frames)

    def snapshot(self) -> Tuple[StackFrame, ...]:
        return tuple(self._frames)

    def __len__(self) -> int:
        return len(self._frames)

    def __bool__(self) -> bool:
        return bool(self._frames)
