"""Build context handed to generator functions, and what they return."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from catapult.recipe_fmt import format_strings

INDENT_SIZE = 4


class GeneratorError(RuntimeError):
    """A generator function failed or returned something unusable."""


def _width(spec: str) -> int:
    if not spec:
        return 0
    try:
        return int(spec)
    except ValueError:
        raise ValueError(f"Invalid format specifier: {spec!r}") from None


@dataclass(frozen=True)
class ContextCompiler:
    """A compiler as described to generator functions."""

    target_triple: str

    def __format__(self, spec: str) -> str:
        width = _width(spec)
        inner_width = width + INDENT_SIZE
        return (
            "ContextCompiler {\n"
            f"{' ' * inner_width}target_triple: {self.target_triple:<{inner_width}},\n"
            f"{' ' * width}}}"
        )

    def __str__(self) -> str:
        return format(self, "")


@dataclass(frozen=True)
class Context:
    """What a generator function learns about the build it runs in."""

    c_compiler: ContextCompiler | None = None
    cpp_compiler: ContextCompiler | None = None

    def __format__(self, spec: str) -> str:
        width = _width(spec)
        inner_width = width + INDENT_SIZE
        inner = " " * inner_width

        def entry(name: str, compiler: ContextCompiler | None) -> str:
            shown = "None" if compiler is None else format(compiler, str(inner_width))
            return f"{inner}{name}: {shown}\n"

        return (
            "Context {\n"
            + entry("c_compiler", self.c_compiler)
            + entry("cpp_compiler", self.cpp_compiler)
            + f"{' ' * width}}}"
        )

    def __str__(self) -> str:
        return format(self, "")


@dataclass
class GeneratorVars:
    """Extra sources and settings produced by a generator function."""

    sources: list[str] = field(default_factory=list)
    include_dirs: list[str] = field(default_factory=list)
    defines: list[str] = field(default_factory=list)
    link_flags: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return (
            "GeneratorVars {\n"
            f"  sources: [{format_strings(self.sources)}],\n"
            f"  include_dirs: [{format_strings(self.include_dirs)}],\n"
            f"  defines: [{format_strings(self.defines)}],\n"
            f"  link_flags: [{format_strings(self.link_flags)}],\n"
            "}"
        )


def eval_vars(func: Callable[[Context], Any], ctx: Context, name: str) -> GeneratorVars:
    """Call the generator ``func`` of target ``name`` with ``ctx``."""
    try:
        result = func(ctx)
    except Exception as exc:
        raise GeneratorError(
            f"Could not evaluate generator function used in {name}: {exc}"
        ) from exc
    if not isinstance(result, GeneratorVars):
        raise GeneratorError(f"Result of generator function could not be unpacked: {name}")
    return result