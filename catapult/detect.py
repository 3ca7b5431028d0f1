"""Identify compilers, linkers and assemblers from their ``-v`` output."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence

from catapult.compilers import Clang, Compiler, Emscripten, Gcc, Nasm

log = logging.getLogger(__name__)

CLANG_ID = "clang version "
EMSCRIPTEN_ID = "emcc "
GCC_ID = "gcc version "
NASM_ID = "NASM version "
TARGET_PREFIX = "Target: "


class IdentificationError(ValueError):
    """A tool could not be run or recognised."""


def find_version(line: str, marker: str) -> str:
    """Return the word that follows ``marker`` in ``line``."""
    start = line.find(marker)
    if start < 0:
        raise IdentificationError(f'"{marker}" not found in "{line}"')
    return line[start + len(marker):].split(" ", 1)[0]


def _find_target(lines: Sequence[str]) -> str:
    for line in lines:
        if line.startswith(TARGET_PREFIX):
            return line[len(TARGET_PREFIX):]
    raise IdentificationError(f'Could not find "{TARGET_PREFIX}" in compiler output')


def _first_line(lines: Sequence[str], kind: str) -> str:
    if not lines:
        raise IdentificationError(
            f"{kind.capitalize()} command output empty. Could not identify {kind}"
        )
    return lines[0]


def _executable(cmd: Sequence[str], kind: str) -> str:
    if not cmd:
        raise IdentificationError(f"{kind.capitalize()} command is empty")
    return cmd[0]


def parse_assembler_output(cmd: Sequence[str], output: str) -> Nasm:
    """Recognise an assembler from the text it printed for ``-v``."""
    exe = _executable(cmd, "assembler")
    first_line = _first_line(output.splitlines(), "assembler")
    if first_line.startswith(NASM_ID):
        log.info("assembler: NASM")
        version = find_version(first_line, NASM_ID)
        log.info("assembler version: %s", version)
        return Nasm(cmd=list(cmd), version=version)
    raise IdentificationError(f'Could not identify assembler "{exe}"')


def _identify_clang(first_line: str, lines: Sequence[str], cmd: Sequence[str]) -> Clang | None:
    if not first_line.startswith(CLANG_ID) and " " + CLANG_ID not in first_line:
        return None
    log.info("compiler: clang")
    version = find_version(first_line, CLANG_ID)
    log.info("compiler version: %s", version)
    target = _find_target(lines)
    log.info("compiler target: %s", target)
    return Clang(cmd=list(cmd), version=version, target=target)


def _identify_gcc(lines: Sequence[str], cmd: Sequence[str]) -> Gcc | None:
    line = next((candidate for candidate in lines if candidate.startswith(GCC_ID)), None)
    if line is None:
        return None
    log.info("compiler: gcc")
    version = find_version(line, GCC_ID)
    log.info("compiler version: %s", version)
    target = _find_target(lines)
    log.info("compiler target: %s", target)
    return Gcc(cmd=list(cmd), version=version, target=target)


def _identify_emscripten(
    first_line: str, lines: Sequence[str], cmd: Sequence[str]
) -> Emscripten | None:
    if not first_line.startswith(EMSCRIPTEN_ID):
        return None
    log.info("compiler: emscripten")
    close_paren = first_line.find(")")
    start = close_paren + 1 if close_paren >= 0 else len(EMSCRIPTEN_ID)
    rest = first_line[start:]
    tail = rest.lstrip() or rest
    version = tail.split(" ", 1)[0]
    log.info("compiler version: %s", version)
    target = _find_target(lines)
    log.info("compiler target: %s", target)
    return Emscripten(cmd=list(cmd), version=version, target=target)


def parse_compiler_output(cmd: Sequence[str], output: str, kind: str = "compiler") -> Compiler:
    """Recognise a compiler driver from its ``-v`` text.

    ``kind`` names the role ("compiler" or "linker") in error messages.
    Clang is tried first, then GCC, then Emscripten.
    """
    exe = _executable(cmd, kind)
    lines = output.splitlines()
    first_line = _first_line(lines, kind)
    found = (
        _identify_clang(first_line, lines, cmd)
        or _identify_gcc(lines, cmd)
        or _identify_emscripten(first_line, lines, cmd)
    )
    if found is None:
        raise IdentificationError(f'Could not identify {kind} "{exe}"')
    return found


def _run_version(exe: str, kind: str) -> subprocess.CompletedProcess[bytes]:
    try:
        proc = subprocess.run(
            [exe, "-v"],
            capture_output=True,
            stdin=subprocess.DEVNULL,
            check=False,
        )
    except OSError as exc:
        raise IdentificationError(f'Error executing {kind} command "{exe} -v": {exc}') from exc
    if proc.returncode != 0:
        raise IdentificationError(
            f'{kind.capitalize()} command returned non-success exit code: '
            f'"{exe} -v": {proc.returncode}'
        )
    return proc


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", errors="replace")


def identify_assembler(cmd: Sequence[str]) -> Nasm:
    """Run ``cmd[0] -v`` and recognise the assembler from stdout and stderr."""
    log.debug("identify_assembler() cmd: %s", " ".join(cmd))
    exe = _executable(cmd, "assembler")
    proc = _run_version(exe, "assembler")
    output = _decode(proc.stdout) + _decode(proc.stderr)
    log.debug("%s -v output: %s", exe, output)
    return parse_assembler_output(cmd, output)


def _identify_driver(cmd: Sequence[str], kind: str) -> Compiler:
    log.debug("identify_%s() cmd: %s", kind, " ".join(cmd))
    exe = _executable(cmd, kind)
    # `-v` prints the version banner to stderr.
    output = _decode(_run_version(exe, kind).stderr)
    log.debug("%s -v output: %s", exe, output)
    return parse_compiler_output(cmd, output, kind)


def identify_compiler(cmd: Sequence[str]) -> Compiler:
    """Run ``cmd[0] -v`` and recognise the compiler from its stderr."""
    return _identify_driver(cmd, "compiler")


def identify_linker(cmd: Sequence[str]) -> Compiler:
    """Run ``cmd[0] -v`` and recognise the linking driver from its stderr."""
    return _identify_driver(cmd, "linker")