"""Compilers, linkers and assemblers known to the build system."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


class UnsupportedStandardError(ValueError):
    """A language standard the compiler has no flag for."""


class UnsupportedOperationError(RuntimeError):
    """An operation the tool cannot perform."""


_C_STANDARDS = {"11": "-std=c11", "17": "-std=c17"}
_CPP_STANDARDS = {
    "11": "-std=c++11",
    "14": "-std=c++14",
    "17": "-std=c++17",
    "20": "-std=c++20",
    "23": "-std=c++23",
}


class _Unavailable:
    """Attribute that a tool cannot provide; reading it raises."""

    def __init__(self, description: str) -> None:
        self.description = description
        self.attribute = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.attribute = name

    def __get__(self, instance: object, owner: type | None = None):
        if instance is None:
            return self
        tool = getattr(owner, "id", "") or type(instance).__name__
        raise UnsupportedOperationError(
            f"{tool} compiler does not provide {self.description} ({self.attribute})"
        )


class Compiler:
    """A GCC-style compiler driver, also usable as the executable linker."""

    id: ClassVar[str] = ""
    out_flag: ClassVar[str] = "-o"
    cmd: list[str]
    version: str
    target: str

    def depfile_flags(self, out_file: str, dep_file: str) -> list[str]:
        return ["-MD", "-MT", out_file, "-MF", dep_file]

    def c_std_flag(self, std: str) -> str:
        try:
            return _C_STANDARDS[std]
        except KeyError:
            raise UnsupportedStandardError(f"C standard not supported by compiler: {std}") from None

    def cpp_std_flag(self, std: str) -> str:
        try:
            return _CPP_STANDARDS[std]
        except KeyError:
            raise UnsupportedStandardError(f"C++ standard not supported by compiler: {std}") from None

    def position_independent_code_flag(self) -> str | None:
        return "-fPIC"

    def position_independent_executable_flag(self) -> str | None:
        return "-fPIE"

    def linker_cmd(self) -> list[str]:
        """Command used when this driver links an executable."""
        return list(self.cmd)

    def linker_pie_flag(self) -> str | None:
        """Flag the linker needs for a position-independent executable."""
        return "-pie"


@dataclass(frozen=True)
class _IdentifiedCompiler(Compiler):
    cmd: list[str]
    version: str
    target: str


@dataclass(frozen=True)
class Gcc(_IdentifiedCompiler):
    id: ClassVar[str] = "gcc"


@dataclass(frozen=True)
class Clang(_IdentifiedCompiler):
    id: ClassVar[str] = "clang"

    @property
    def target_windows(self) -> bool:
        return "-windows-" in self.target

    def position_independent_code_flag(self) -> str | None:
        return None if self.target_windows else "-fPIC"

    def position_independent_executable_flag(self) -> str | None:
        return None if self.target_windows else "-fPIE"

    def linker_cmd(self) -> list[str]:
        cmd = list(self.cmd)
        if self.target_windows:
            cmd.append("-fuse-ld=lld-link")
        return cmd

    def linker_pie_flag(self) -> str | None:
        return None if self.target_windows else "-pie"


@dataclass(frozen=True)
class Emscripten(_IdentifiedCompiler):
    id: ClassVar[str] = "emscripten"

    def position_independent_code_flag(self) -> str | None:
        return None

    def position_independent_executable_flag(self) -> str | None:
        return None

    def linker_pie_flag(self) -> str | None:
        return None


class Msvc(Compiler):
    """Stand-in describing MSVC to recipes when Visual Studio projects are generated.

    It is never invoked, so only its identity is available.
    """

    id: ClassVar[str] = "MSVC"
    version = ""
    cmd = _Unavailable("a command")  # type: ignore[assignment]
    target = _Unavailable("a target")  # type: ignore[assignment]
    out_flag = _Unavailable("an output flag")  # type: ignore[assignment]

    def _unsupported(self, what: str) -> UnsupportedOperationError:
        return UnsupportedOperationError(f"MSVC compiler does not provide {what}")

    def depfile_flags(self, out_file: str, dep_file: str) -> list[str]:
        raise self._unsupported("depfile flags")

    def c_std_flag(self, std: str) -> str:
        raise self._unsupported("C standard flags")

    def cpp_std_flag(self, std: str) -> str:
        raise self._unsupported("C++ standard flags")

    def position_independent_code_flag(self) -> str | None:
        return None

    def position_independent_executable_flag(self) -> str | None:
        return None

    def linker_cmd(self) -> list[str]:
        raise self._unsupported("a linker command")

    def linker_pie_flag(self) -> str | None:
        raise self._unsupported("a linker")


class Assembler:
    """An assembler invoked on assembly sources."""

    id: ClassVar[str] = ""
    out_flag: ClassVar[str] = "-o"
    cmd: list[str]
    version: str


@dataclass(frozen=True)
class Nasm(Assembler):
    cmd: list[str]
    version: str
    id: ClassVar[str] = "nasm"

    def depfile_flags(self, out_file: str, dep_file: str) -> list[str]:
        return ["-MD", dep_file, "-MT", out_file]