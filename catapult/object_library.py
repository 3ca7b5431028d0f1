"""Object libraries: compiled objects linked directly into dependents."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from catapult.misc import SourcePath, Sources, unique
from catapult.target import LinkTarget, Project


@dataclass(eq=False)
class ObjectLibrary(LinkTarget):
    """A set of object files with private and public usage requirements."""

    name: str
    sources: Sources = field(default_factory=Sources)
    link_private: list[LinkTarget] = field(default_factory=list)
    link_public: list[LinkTarget] = field(default_factory=list)
    include_dirs_private: list[SourcePath] = field(default_factory=list)
    include_dirs_public: list[SourcePath] = field(default_factory=list)
    defines_private: list[str] = field(default_factory=list)
    defines_public: list[str] = field(default_factory=list)
    link_flags_public: list[str] = field(default_factory=list)
    generator_vars: Any = None
    artifact_name: str | None = None
    project: Project | None = field(default=None, repr=False)

    def output_name(self) -> str:
        return self.artifact_name if self.artifact_name is not None else self.name

    def internal_includes(self) -> list[Path]:
        return unique(
            [
                *self.public_includes_recursive(),
                *(inc.full for inc in self.include_dirs_private),
                *(inc for link in self.link_private for inc in link.public_includes_recursive()),
            ]
        )

    def internal_defines(self) -> list[str]:
        return unique(
            [
                *self.public_defines_recursive(),
                *self.defines_private,
                *(d for link in self.link_private for d in link.public_defines_recursive()),
            ]
        )

    def internal_link_flags(self) -> list[str]:
        return self.public_link_flags_recursive()

    def internal_links(self) -> list[LinkTarget]:
        return self.public_links_recursive()

    def public_includes_recursive(self) -> list[Path]:
        return unique(
            [
                *(inc for link in self.link_public for inc in link.public_includes_recursive()),
                *(inc.full for inc in self.include_dirs_public),
            ]
        )

    def public_defines_recursive(self) -> list[str]:
        return unique(
            [
                *(d for link in self.link_public for d in link.public_defines_recursive()),
                *self.defines_public,
            ]
        )

    def public_link_flags_recursive(self) -> list[str]:
        return unique(
            [
                *(f for link in self.link_public for f in link.public_link_flags_recursive()),
                *self.link_flags_public,
            ]
        )

    def public_links(self) -> list[LinkTarget]:
        return list(self.link_public)

    def public_links_recursive(self) -> list[LinkTarget]:
        # Private links still have to be linked; only their usage
        # requirements stop at this library. Breadth-first order.
        direct = [*self.link_private, *self.link_public]
        return [*direct, *(sub for link in direct for sub in link.public_links_recursive())]