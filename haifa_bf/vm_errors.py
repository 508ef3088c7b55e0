from __future__ import annotations

import os
from typing import Optional, Union

UNBALANCED_MESSAGE = "Error: unbalanced number of '[' and ']' in the source code!"
SOURCE_NOT_FOUND_MESSAGE = "Unable to find the file!"


class BFError(Exception):
    """Base class for every error raised by the interpreter."""


class SourceNotFoundError(BFError):
    """The program source does not exist; raised before any read."""

    def __init__(self, path: Union[str, os.PathLike]):
        super().__init__(SOURCE_NOT_FOUND_MESSAGE)
        self.path = os.fspath(path)


class UnbalancedBracketsError(BFError):
    def __init__(self, offset: Optional[int] = None, message: str = UNBALANCED_MESSAGE):
        super().__init__(message)
        self.offset = offset


class VMRuntimeError(BFError, RuntimeError):
    """Defect detected while dispatching, with the offending pc attached."""

    def __init__(self, message: str, pc: int):
        super().__init__(message)
        self.pc = pc


class StepLimitExceeded(BFError):
    def __init__(self, steps: int):
        super().__init__(f"step limit of {steps} instructions exceeded")
        self.steps = steps


__all__ = [
    "BFError",
    "SourceNotFoundError",
    "UnbalancedBracketsError",
    "VMRuntimeError",
    "StepLimitExceeded",
    "UNBALANCED_MESSAGE",
    "SOURCE_NOT_FOUND_MESSAGE",
]
