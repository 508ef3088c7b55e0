from __future__ import annotations

import os
import pathlib
from typing import Union

from .bytecode import CODE_SIZE, Program
from .vm_errors import SourceNotFoundError

PathLike = Union[str, os.PathLike]


def load_source(path: PathLike, capacity: int = CODE_SIZE) -> bytes:
    """Read at most ``capacity`` bytes of program source; extra bytes are dropped."""
    source = pathlib.Path(path)
    if not source.exists():
        raise SourceNotFoundError(path)
    with source.open("rb") as fh:
        return fh.read(capacity)


def load_program(path: PathLike, capacity: int = CODE_SIZE) -> Program:
    return Program(load_source(path, capacity))


__all__ = ["load_source", "load_program"]
