"""Source file classification and small collection helpers."""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable, Iterator
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T", bound=Hashable)


@dataclass(frozen=True)
class SourcePath:
    """A path as written in a recipe together with its resolved location."""

    full: Path
    name: str


def join_parent(parent_path: str | PathLike[str], name: str) -> SourcePath:
    """Resolve ``name`` against ``parent_path``.

    An absolute ``name`` replaces the parent. Paths that exist are made
    canonical; a missing path is kept as joined and a warning is logged.
    """
    joined = Path(parent_path) / name
    try:
        exists = joined.exists()
    except OSError as exc:
        log.warning('Existence of path could not be confirmed "%s": %s', joined, exc)
        return SourcePath(joined, name)
    if not exists:
        log.warning('Path does not exist: "%s"', joined)
        return SourcePath(joined, name)
    try:
        return SourcePath(joined.resolve(strict=True), name)
    except OSError as exc:
        log.warning('Could not canonicalize path "%s": %s', joined, exc)
        return SourcePath(joined, name)


def is_c_source(filename: str) -> bool:
    return filename.endswith((".c", ".C"))


def is_cpp_source(filename: str) -> bool:
    return filename.endswith((".cpp", ".cc"))


def is_h_source(filename: str) -> bool:
    return filename.endswith((".h", ".hpp"))


def is_nasm_source(filename: str) -> bool:
    return filename.endswith(".asm")


def unique(items: Iterable[T]) -> list[T]:
    """Return the items with duplicates removed, keeping first occurrences in order."""
    return list(dict.fromkeys(items))


_KINDS: tuple[tuple[str, Callable[[str], bool]], ...] = (
    ("c", is_c_source),
    ("cpp", is_cpp_source),
    ("h", is_h_source),
    ("nasm", is_nasm_source),
)


@dataclass
class Sources:
    """Source files of a target, grouped by language."""

    c: list[SourcePath] = field(default_factory=list)
    cpp: list[SourcePath] = field(default_factory=list)
    h: list[SourcePath] = field(default_factory=list)
    nasm: list[SourcePath] = field(default_factory=list)

    def __iter__(self) -> Iterator[SourcePath]:
        yield from self.c
        yield from self.cpp
        yield from self.h
        yield from self.nasm

    def extended_with(self, other: Sources) -> Sources:
        """Return a new collection holding these sources followed by ``other``'s."""
        return Sources(
            c=[*self.c, *other.c],
            cpp=[*self.cpp, *other.cpp],
            h=[*self.h, *other.h],
            nasm=[*self.nasm, *other.nasm],
        )

    @classmethod
    def from_names(cls, sources: Iterable[str], parent_path: str | PathLike[str]) -> Sources:
        """Classify source names relative to ``parent_path``.

        Raises ValueError for a file whose extension is not recognised.
        """
        result = cls()
        for name in sources:
            src = join_parent(parent_path, name)
            kind = next((k for k, matches in _KINDS if matches(src.name)), None)
            if kind is None:
                raise ValueError(f"Unknown source type: {src.name}")
            getattr(result, kind).append(src)
        return result