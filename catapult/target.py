"""Build target interfaces and the resolved project tree.

Targets compare and hash by identity: two targets are the same link only
when they are the same object.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path


class Target(ABC):
    """Anything that is compiled from sources."""

    name: str

    def output_name(self) -> str:
        """Name of the produced artifact; defaults to the target name."""
        return self.name

    @abstractmethod
    def internal_includes(self) -> list[Path]:
        """Include directories used when compiling this target's own sources."""

    @abstractmethod
    def internal_defines(self) -> list[str]:
        """Preprocessor definitions used when compiling this target's own sources."""

    @abstractmethod
    def internal_link_flags(self) -> list[str]:
        """Flags passed to the linker when this target is linked."""

    @abstractmethod
    def internal_links(self) -> list[LinkTarget]:
        """Every target that has to be linked together with this one."""


class LinkTarget(Target):
    """A target other targets can link against."""

    @abstractmethod
    def public_includes_recursive(self) -> list[Path]:
        """Include directories propagated to dependents."""

    @abstractmethod
    def public_defines_recursive(self) -> list[str]:
        """Definitions propagated to dependents."""

    @abstractmethod
    def public_link_flags_recursive(self) -> list[str]:
        """Link flags propagated to dependents."""

    @abstractmethod
    def public_links(self) -> list[LinkTarget]:
        """Links declared public on this target."""

    @abstractmethod
    def public_links_recursive(self) -> list[LinkTarget]:
        """Every target a dependent must link because of this one."""


@dataclass(frozen=True)
class ProjectInfo:
    name: str
    path: Path


@dataclass(eq=False)
class Project:
    """A resolved project with its targets and dependency projects."""

    info: ProjectInfo
    dependencies: list[Project] = field(default_factory=list)
    executables: list[Target] = field(default_factory=list)
    static_libraries: list[LinkTarget] = field(default_factory=list)
    object_libraries: list[LinkTarget] = field(default_factory=list)
    interface_libraries: list[LinkTarget] = field(default_factory=list)

    def all_link_targets(self) -> list[LinkTarget]:
        """Static, object and interface libraries of this project, in that order."""
        return [*self.static_libraries, *self.object_libraries, *self.interface_libraries]