"""Global settings, package options and toolchain details offered to recipes."""

from __future__ import annotations

import math
import tomllib
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from catapult.toolchain import Toolchain

PkgOpt = Union[bool, int, float, str]

INDENT_SIZE = 4
_U32_MAX = 2**32 - 1
_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


class OptionError(ValueError):
    """A package option value is not a bool, integer, float or string."""


def _width(spec: str) -> int:
    """Read the indentation width from a format specification."""
    if not spec:
        return 0
    try:
        return int(spec)
    except ValueError:
        raise ValueError(f"Invalid format specifier: {spec!r}") from None


def _pad(width: int) -> str:
    return " " * width


class _Block:
    """Values printed as indented blocks; the format width is the indentation."""

    def __str__(self) -> str:
        return format(self, "")


def parse_pkg_opt(value: str) -> PkgOpt:
    """Parse a TOML value literal into a package option value."""
    try:
        table = tomllib.loads(f"value = {value}")
    except tomllib.TOMLDecodeError as exc:
        raise OptionError(f"Invalid package option value {value!r}: {exc}") from exc
    if list(table) != ["value"]:
        raise OptionError(f"Invalid package option value {value!r}")
    parsed: Any = table["value"]
    if isinstance(parsed, bool):
        return parsed
    if isinstance(parsed, int):
        if not _I64_MIN <= parsed <= _I64_MAX:
            raise OptionError(f"Package option value out of range: {value}")
        return parsed
    if isinstance(parsed, (float, str)):
        return parsed
    raise OptionError(
        f"Invalid type for package option value {value!r}: expected bool|int|float|str"
    )


def format_pkg_opt(value: PkgOpt) -> str:
    """Render an option value: lower-case booleans, floats without exponent."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
        text = format(Decimal(repr(value)), "f")
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        return text
    return str(value)


def _parse_u32(text: str) -> int:
    digits = text[1:] if text.startswith("+") else text
    if digits and digits.isascii() and digits.isdigit():
        number = int(digits)
        if number <= _U32_MAX:
            return number
    return 0


@dataclass(frozen=True)
class Version(_Block):
    """A tool version split into numeric parts and a revision suffix."""

    str: str
    major: int = 0
    minor: int = 0
    patch: int = 0
    revision: str = ""

    @classmethod
    def parse(cls, text: str) -> Version:
        """Split ``major.minor.patch-revision``; unreadable parts become 0."""
        semver, _, revision = text.partition("-")
        numbers = [_parse_u32(part) for part in semver.split(".")[:3]]
        numbers += [0] * (3 - len(numbers))
        return cls(text, numbers[0], numbers[1], numbers[2], revision)

    def __format__(self, spec: str) -> str:
        width = _width(spec)
        inner = _pad(width + INDENT_SIZE)
        return (
            "Version {\n"
            f'{inner}str: "{self.str}",\n'
            f"{inner}major: {self.major},\n"
            f"{inner}minor: {self.minor},\n"
            f"{inner}patch: {self.patch},\n"
            f'{inner}revision: "{self.revision}",\n'
            f"{_pad(width)}}}"
        )


def _tool_block(title: str, tool_id: str, version: Version, spec: str) -> str:
    width = _width(spec)
    inner_width = width + INDENT_SIZE
    inner = _pad(inner_width)
    return (
        f"{title} {{\n"
        f'{inner}id: "{tool_id}",\n'
        f"{inner}version: {version:{inner_width}},\n"
        f"{_pad(width)}}}"
    )


@dataclass(frozen=True)
class CompilerInfo(_Block):
    id: str
    version: Version

    def __format__(self, spec: str) -> str:
        return _tool_block("Compiler", self.id, self.version, spec)


@dataclass(frozen=True)
class AssemblerInfo(_Block):
    id: str
    version: Version

    def __format__(self, spec: str) -> str:
        return _tool_block("Assembler", self.id, self.version, spec)


def _optional_entry(name: str, value: Any, width: int) -> str:
    shown = "None" if value is None else format(value, str(width))
    return f"{_pad(width)}{name}: {shown}\n"


@dataclass(frozen=True)
class ToolchainInfo(_Block):
    """The compilers and assembler of the toolchain, as recipes see them."""

    c_compiler: CompilerInfo | None = None
    cpp_compiler: CompilerInfo | None = None
    nasm_assembler: AssemblerInfo | None = None

    def __format__(self, spec: str) -> str:
        width = _width(spec)
        inner_width = width + INDENT_SIZE
        return (
            "Toolchain {\n"
            + _optional_entry("c_compiler", self.c_compiler, inner_width)
            + _optional_entry("cpp_compiler", self.cpp_compiler, inner_width)
            + _optional_entry("nasm_assembler", self.nasm_assembler, inner_width)
            + f"{_pad(width)}}}"
        )


@dataclass(frozen=True)
class GlobalOptions(_Block):
    """Options from the root manifest that apply to every package."""

    c_standard: str | None = None
    cpp_standard: str | None = None
    position_independent_code: bool | None = None

    def __format__(self, spec: str) -> str:
        width = _width(spec)
        inner = _pad(width + INDENT_SIZE)
        pic = (
            "None"
            if self.position_independent_code is None
            else format_pkg_opt(self.position_independent_code)
        )
        return (
            "GlobalOptions {\n"
            f"{inner}c_standard: {self.c_standard or 'None'},\n"
            f"{inner}cpp_standard: {self.cpp_standard or 'None'},\n"
            f"{inner}position_independent_code: {pic},\n"
            f"{_pad(width)}}}"
        )


class PackageOptions(_Block):
    """A package's options, readable as attributes."""

    def __init__(self, options: Mapping[str, PkgOpt] | None = None) -> None:
        self._values: dict[str, PkgOpt] = dict(options or {})

    def __getattr__(self, name: str) -> PkgOpt:
        if name.startswith("__") or name == "_values":
            raise AttributeError(name)
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError(f"Package has no option {name!r}") from None

    def names(self) -> list[str]:
        """Names of the options, in the order they were given."""
        return list(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageOptions):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"PackageOptions({self._values!r})"

    def __format__(self, spec: str) -> str:
        if not self._values:
            return "PackageOptions {}"
        width = _width(spec)
        inner = _pad(width + INDENT_SIZE)
        entries = "".join(
            f"{inner}{key}: {format_pkg_opt(value)}\n" for key, value in self._values.items()
        )
        return f"PackageOptions {{\n{entries}{_pad(width)}}}"


@dataclass(frozen=True)
class Global(_Block):
    """Everything a recipe can read through ``GLOBAL``."""

    global_options: GlobalOptions
    package_options: PackageOptions = field(default_factory=PackageOptions)
    toolchain: ToolchainInfo = field(default_factory=ToolchainInfo)

    @classmethod
    def from_toolchain(
        cls,
        options: GlobalOptions,
        package_options: Mapping[str, PkgOpt],
        toolchain: Toolchain,
    ) -> Global:
        """Describe ``toolchain`` and the given options for a recipe."""

        def compiler_info(compiler: Any) -> CompilerInfo | None:
            if compiler is None:
                return None
            return CompilerInfo(compiler.id, Version.parse(compiler.version))

        assembler = toolchain.nasm_assembler
        return cls(
            global_options=GlobalOptions(
                c_standard=options.c_standard,
                cpp_standard=options.cpp_standard,
                position_independent_code=options.position_independent_code,
            ),
            package_options=PackageOptions(package_options),
            toolchain=ToolchainInfo(
                c_compiler=compiler_info(toolchain.c_compiler),
                cpp_compiler=compiler_info(toolchain.cpp_compiler),
                nasm_assembler=(
                    None
                    if assembler is None
                    else AssemblerInfo(assembler.id, Version.parse(assembler.version))
                ),
            ),
        )

    def __format__(self, spec: str) -> str:
        width = _width(spec)
        inner_width = width + INDENT_SIZE
        inner = _pad(inner_width)
        return (
            "Global {\n"
            f"{inner}global_options: {self.global_options:{inner_width}},\n"
            f"{inner}package_options: {self.package_options:{inner_width}},\n"
            f"{inner}toolchain: {self.toolchain:{inner_width}},\n"
            f"{_pad(width)}}}"
        )