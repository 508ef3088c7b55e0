from __future__ import annotations

from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Union

from .bytecode import Opcode, to_bytes
from .vm_errors import UnbalancedBracketsError

_OPEN = Opcode.JUMP_FWD.value
_CLOSE = Opcode.JUMP_BCK.value


def resolve_jumps(code: Union[str, Sequence[int]], length: Optional[int] = None) -> Mapping[int, int]:
    """Match every '[' with its ']' in a single left-to-right pass.

    Both entries point one past a bracket: '[' maps to the offset after its
    matching ']' and ']' maps to the offset after its matching '['. The VM has
    already advanced pc past the dispatched bracket, so the stored target is
    assigned to pc as is.
    """
    if isinstance(code, str):
        code = to_bytes(code)
    # Never scan past the end of the code.
    length = len(code) if length is None else min(length, len(code))
    stack: List[int] = []
    jumps: Dict[int, int] = {}

    for offset in range(length):
        byte = code[offset]
        if byte == _OPEN:
            stack.append(offset)
        elif byte == _CLOSE:
            if not stack:
                raise UnbalancedBracketsError(offset)
            start = stack.pop()
            jumps[start] = offset + 1
            jumps[offset] = start + 1

    if stack:
        raise UnbalancedBracketsError(stack[-1])
    return MappingProxyType(jumps)


__all__ = ["resolve_jumps"]
