"""Toolchain files: which compilers to use and per-profile settings."""

from __future__ import annotations

import logging
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import Any, TypeVar

from catapult.compilers import Assembler, Compiler, Msvc
from catapult.detect import (
    IdentificationError,
    identify_assembler,
    identify_compiler,
    identify_linker,
)

log = logging.getLogger(__name__)

_MSVC_PLATFORMS = ("ARM", "ARM64", "Win32", "x64")
_XCODE_PLATFORMS = ("arm64", "x86_64")

T = TypeVar("T")


class ToolchainError(ValueError):
    """A toolchain file could not be read or is invalid."""


class _Invalid(Exception):
    pass


@dataclass
class VcxprojProfile:
    preprocessor_definitions: list[str]
    property_group: dict[str, str]
    cl_compile: dict[str, str]
    link: dict[str, str]


@dataclass
class XcodeprojectProfile:
    """Xcode build settings; each value is a string or a list of strings."""

    native_target: dict[str, str | list[str]]
    project: dict[str, str | list[str]]


@dataclass
class Profile:
    c_compile_flags: list[str] = field(default_factory=list)
    cpp_compile_flags: list[str] = field(default_factory=list)
    nasm_assemble_flags: list[str] = field(default_factory=list)
    vcxproj: VcxprojProfile | None = None
    xcodeproj: XcodeprojectProfile | None = None


@dataclass
class Toolchain:
    msvc_platforms: list[str] = field(default_factory=list)
    xcode_platforms: list[str] = field(default_factory=list)
    c_compiler: Compiler | None = None
    cpp_compiler: Compiler | None = None
    nasm_assembler: Assembler | None = None
    static_linker: list[str] | None = None
    exe_linker: Compiler | None = None
    profile: dict[str, Profile] = field(default_factory=dict)


def _table(value: Any, key: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise _Invalid(f'"{key}" must be a table')
    return value


def _str_list(value: Any, key: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise _Invalid(f'"{key}" must be an array of strings')
    return list(value)


def _str_map(value: Any, key: str) -> dict[str, str]:
    table = _table(value, key)
    for name, item in table.items():
        if not isinstance(item, str):
            raise _Invalid(f'"{key}.{name}" must be a string')
    return dict(sorted(table.items()))


def _pbx_map(value: Any, key: str) -> dict[str, str | list[str]]:
    table = _table(value, key)
    result: dict[str, str | list[str]] = {}
    for name, item in sorted(table.items()):
        result[name] = item if isinstance(item, str) else _str_list(item, f"{key}.{name}")
    return result


def _required(table: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in table:
        raise _Invalid(f'missing field "{key}" in {where}')
    return table[key]


def _optional(table: Mapping[str, Any], key: str, parse: Callable[[Any, str], T]) -> T | None:
    value = table.get(key)
    return None if value is None else parse(value, key)


def _parse_vcxproj(value: Any, where: str) -> VcxprojProfile:
    table = _table(value, where)
    return VcxprojProfile(
        preprocessor_definitions=_str_list(
            _required(table, "preprocessor_definitions", where), "preprocessor_definitions"
        ),
        property_group=_str_map(_required(table, "property_group", where), "property_group"),
        cl_compile=_str_map(_required(table, "cl_compile", where), "cl_compile"),
        link=_str_map(_required(table, "link", where), "link"),
    )


def _parse_xcodeproj(value: Any, where: str) -> XcodeprojectProfile:
    table = _table(value, where)
    return XcodeprojectProfile(
        native_target=_pbx_map(_required(table, "NativeTarget", where), "NativeTarget"),
        project=_pbx_map(_required(table, "Project", where), "Project"),
    )


def _parse_profile(value: Any, where: str) -> Profile:
    table = _table(value, where)
    return Profile(
        c_compile_flags=_str_list(table.get("c_compile_flags", []), "c_compile_flags"),
        cpp_compile_flags=_str_list(table.get("cpp_compile_flags", []), "cpp_compile_flags"),
        nasm_assemble_flags=_str_list(table.get("nasm_assemble_flags", []), "nasm_assemble_flags"),
        vcxproj=_optional(table, "vcxproj", lambda v, k: _parse_vcxproj(v, f"{where}.{k}")),
        xcodeproj=_optional(table, "xcodeproj", lambda v, k: _parse_xcodeproj(v, f"{where}.{k}")),
    )


def _parse_profiles(value: Any, key: str) -> dict[str, Profile]:
    table = _table(value, key)
    return {name: _parse_profile(item, f"{key}.{name}") for name, item in sorted(table.items())}


def _identify(identify: Callable[[list[str]], T], cmd: list[str] | None, what: str) -> T | None:
    if cmd is None:
        return None
    try:
        return identify(cmd)
    except IdentificationError as exc:
        raise ToolchainError(f"Error identifying {what}: {exc}") from exc


def _check_platforms(platforms: list[str], valid: tuple[str, ...], kind: str) -> None:
    invalid = [platform for platform in platforms if platform not in valid]
    if invalid:
        raise ToolchainError(
            f"Invalid {kind} platform in toolchain: {', '.join(invalid)}. "
            f"Valid {kind} platforms are {', '.join(valid)}"
        )


def toolchain_from_dict(
    data: Mapping[str, Any], for_msvc: bool = False, source: str = "<toolchain>"
) -> Toolchain:
    """Build a toolchain from parsed toolchain-file data.

    Compilers, linker and assembler are identified by running them. With
    ``for_msvc`` both compilers are the MSVC stand-in and are not run.
    """
    try:
        msvc_platforms = _optional(data, "msvc_platforms", _str_list) or []
        xcode_platforms = _optional(data, "xcode_platforms", _str_list) or []
        c_cmd = _optional(data, "c_compiler", _str_list)
        cpp_cmd = _optional(data, "cpp_compiler", _str_list)
        nasm_cmd = _optional(data, "nasm_assembler", _str_list)
        static_linker = _optional(data, "static_linker", _str_list)
        exe_linker_cmd = _optional(data, "exe_linker", _str_list)
        profile = _optional(data, "profile", _parse_profiles) or {}
    except _Invalid as exc:
        raise ToolchainError(f'Error reading toolchain file "{source}": {exc}') from None

    _check_platforms(msvc_platforms, _MSVC_PLATFORMS, "msvc")
    _check_platforms(xcode_platforms, _XCODE_PLATFORMS, "xcode")

    nasm_assembler = _identify(identify_assembler, nasm_cmd, "NASM assembler")
    if for_msvc:
        c_compiler: Compiler | None = Msvc()
        cpp_compiler: Compiler | None = Msvc()
    else:
        c_compiler = _identify(identify_compiler, c_cmd, "C compiler")
        cpp_compiler = _identify(identify_compiler, cpp_cmd, "C++ compiler")
    exe_linker = _identify(identify_linker, exe_linker_cmd, "linker")

    if c_compiler is not None and c_compiler.position_independent_code_flag() is None:
        log.info("position_independent_code not supported by the specified C compiler")
    if cpp_compiler is not None and cpp_compiler.position_independent_code_flag() is None:
        log.info("position_independent_code not supported by the specified C++ compiler")

    return Toolchain(
        msvc_platforms=msvc_platforms,
        xcode_platforms=xcode_platforms,
        c_compiler=c_compiler,
        cpp_compiler=cpp_compiler,
        nasm_assembler=nasm_assembler,
        static_linker=static_linker,
        exe_linker=exe_linker,
        profile=profile,
    )


def get_toolchain(toolchain_path: str | PathLike[str], for_msvc: bool = False) -> Toolchain:
    """Read a TOML toolchain file and build the toolchain it describes."""
    path = Path(toolchain_path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ToolchainError(f'Error opening toolchain file "{path}": {exc}') from exc
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ToolchainError(f'Error reading toolchain file "{path}": {exc}') from exc
    return toolchain_from_dict(data, for_msvc, str(path))