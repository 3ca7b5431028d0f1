"""Package manifests, package options and registry downloads."""

from __future__ import annotations

import base64
import binascii
import io
import json
import logging
import os
import sys
import tarfile
import tomllib
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass
from http import HTTPStatus
from os import PathLike
from pathlib import Path
from typing import Any

from catapult.options import GlobalOptions, OptionError, PkgOpt, parse_pkg_opt

log = logging.getLogger(__name__)

CATAPULT_TOML = "catapult.toml"
BUILD_CATAPULT = "build.catapult"
_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


class ManifestError(ValueError):
    """A manifest could not be read, or a package could not be fetched."""


class _Invalid(Exception):
    pass


@dataclass
class PackageManifest:
    name: str
    source: str | None = None


@dataclass
class DependencyManifest:
    version: str | None = None
    registry: str | None = None
    channel: str | None = None
    path: str | None = None
    git: str | None = None
    options: dict[str, PkgOpt] | None = None


@dataclass
class ManifestOptions:
    c_standard: str | None = None
    cpp_standard: str | None = None
    position_independent_code: bool | None = None


@dataclass
class Manifest:
    package: PackageManifest
    dependencies: dict[str, DependencyManifest] | None = None
    options: ManifestOptions | None = None
    package_options: dict[str, PkgOpt] | None = None


def _table(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise _Invalid(f'"{where}" must be a table')
    return value


def _opt_str(table: Mapping[str, Any], key: str, where: str) -> str | None:
    value = table.get(key)
    if value is not None and not isinstance(value, str):
        raise _Invalid(f'"{where}.{key}" must be a string')
    return value


def _opt_bool(table: Mapping[str, Any], key: str, where: str) -> bool | None:
    value = table.get(key)
    if value is not None and not isinstance(value, bool):
        raise _Invalid(f'"{where}.{key}" must be a boolean')
    return value


def _pkg_opt(value: Any, where: str) -> PkgOpt:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if not _I64_MIN <= value <= _I64_MAX:
            raise _Invalid(f'"{where}" is out of range')
        return value
    if isinstance(value, (float, str)):
        return value
    raise _Invalid(f'invalid type for "{where}": expected bool|int|float|str')


def _pkg_opt_map(value: Any, where: str) -> dict[str, PkgOpt]:
    table = _table(value, where)
    return {key: _pkg_opt(item, f"{where}.{key}") for key, item in table.items()}


def _parse_dependency(value: Any, where: str) -> DependencyManifest:
    table = _table(value, where)
    options = table.get("options")
    return DependencyManifest(
        version=_opt_str(table, "version", where),
        registry=_opt_str(table, "registry", where),
        channel=_opt_str(table, "channel", where),
        path=_opt_str(table, "path", where),
        git=_opt_str(table, "git", where),
        options=None if options is None else _pkg_opt_map(options, f"{where}.options"),
    )


def _build_manifest(data: Mapping[str, Any]) -> Manifest:
    if "package" not in data:
        raise _Invalid('missing field "package"')
    package_table = _table(data["package"], "package")
    name = package_table.get("name")
    if name is None:
        raise _Invalid('missing field "name" in "package"')
    if not isinstance(name, str):
        raise _Invalid('"package.name" must be a string')
    package = PackageManifest(name=name, source=_opt_str(package_table, "source", "package"))

    dependencies = None
    if data.get("dependencies") is not None:
        deps_table = _table(data["dependencies"], "dependencies")
        dependencies = {
            dep: _parse_dependency(deps_table[dep], f"dependencies.{dep}")
            for dep in sorted(deps_table)
        }

    options = None
    if data.get("options") is not None:
        options_table = _table(data["options"], "options")
        options = ManifestOptions(
            c_standard=_opt_str(options_table, "c_standard", "options"),
            cpp_standard=_opt_str(options_table, "cpp_standard", "options"),
            position_independent_code=_opt_bool(
                options_table, "position_independent_code", "options"
            ),
        )

    package_options = None
    if data.get("package_options") is not None:
        package_options = _pkg_opt_map(data["package_options"], "package_options")

    return Manifest(
        package=package,
        dependencies=dependencies,
        options=options,
        package_options=package_options,
    )


def parse_manifest(text: str, origin: str = CATAPULT_TOML) -> Manifest:
    """Parse manifest TOML text; ``origin`` names it in error messages."""
    try:
        data = tomllib.loads(text)
        return _build_manifest(data)
    except (tomllib.TOMLDecodeError, _Invalid) as exc:
        raise ManifestError(f"Error reading {origin}: {exc}") from None


def read_manifest(src_dir: str | PathLike[str]) -> Manifest:
    """Read the manifest file of the package in ``src_dir``."""
    path = Path(src_dir) / CATAPULT_TOML
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestError(f"Error opening {path}: {exc}") from exc
    return parse_manifest(text, str(path))


def map_to_pkg_opt_map(
    opt_map: Mapping[str, Mapping[str, str]],
) -> dict[str, dict[str, PkgOpt]]:
    """Parse package option values given as TOML literals, per package."""
    try:
        return {
            package: {name: parse_pkg_opt(opt_map[package][name]) for name in sorted(opt_map[package])}
            for package in sorted(opt_map)
        }
    except OptionError as exc:
        raise ManifestError(f"Could not deserialize package option: {exc}") from exc


def global_options_from_manifest(manifest: Manifest) -> GlobalOptions:
    """The options of the root manifest that apply to every package."""
    options = manifest.options or ManifestOptions()
    return GlobalOptions(
        c_standard=options.c_standard,
        cpp_standard=options.cpp_standard,
        position_independent_code=options.position_independent_code,
    )


def merge_package_options(
    manifest: Manifest,
    package_options: Mapping[str, Mapping[str, PkgOpt]],
    underrides: Mapping[str, PkgOpt] | None = None,
) -> dict[str, PkgOpt]:
    """Work out the option values a package is built with.

    The package's declared defaults are replaced by values requested by the
    depending package (``underrides``), which in turn give way to values
    given explicitly for this package. Options the package does not declare
    are reported and ignored.
    """
    name = manifest.package.name
    requested = dict(underrides or {})
    requested.update(package_options.get(name, {}))
    resolved = dict(manifest.package_options or {})
    for opt_name, value in requested.items():
        log.debug("Override option: %s", opt_name)
        if opt_name in resolved:
            resolved[opt_name] = value
        else:
            log.error('Package "%s" does not provide option "%s"', name, opt_name)
    return resolved


def _home() -> Path:
    home = os.environ.get("HOME")
    if home:
        return Path(home)
    try:
        return Path.home()
    except RuntimeError:
        raise ManifestError("Could not find a HOME directory") from None


def _cache_dir() -> Path:
    if sys.platform == "win32":
        base = os.environ.get("LOCALAPPDATA")
        if not base:
            raise ManifestError("Could not find a HOME directory")
        return Path(base)
    if sys.platform == "darwin":
        return _home() / "Library" / "Caches"
    xdg = os.environ.get("XDG_CACHE_HOME")
    if xdg and os.path.isabs(xdg):
        return Path(xdg)
    return _home() / ".cache"


def _status_text(code: int) -> str:
    try:
        return f"{code} {HTTPStatus(code).phrase}"
    except ValueError:
        return str(code)


def _fetch(request: urllib.request.Request | str, url: str, name: str, timeout: float | None) -> bytes:
    try:
        kwargs = {} if timeout is None else {"timeout": timeout}
        with urllib.request.urlopen(request, **kwargs) as resp:
            status = resp.status
            body = resp.read()
    except urllib.error.HTTPError as exc:
        raise ManifestError(
            f'Request GET "{url}" returned status {_status_text(exc.code)}'
        ) from exc
    except (urllib.error.URLError, OSError) as exc:
        raise ManifestError(
            f'Error trying to fetch "{name}" from {url}:\n    {exc}'
        ) from exc
    if status != HTTPStatus.OK:
        raise ManifestError(f'Request GET "{url}" returned status {_status_text(status)}')
    return body


def _decode_unpadded(text: str, what: str) -> bytes:
    if "=" in text:
        raise ManifestError(f"Could not decode {what}: unexpected padding")
    try:
        return base64.b64decode(text + "=" * (-len(text) % 4), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ManifestError(f"Could not decode {what}: {exc}") from exc


def _record_field(record: Any, key: str) -> str:
    if not isinstance(record, dict) or not isinstance(record.get(key), str):
        raise ManifestError(f'Registry response is missing string field "{key}"')
    return record[key]


def _unpack(archive: bytes, destination: Path) -> None:
    destination.mkdir(parents=True, exist_ok=True)
    try:
        with tarfile.open(fileobj=io.BytesIO(archive), mode="r:gz") as tar:
            if hasattr(tarfile, "data_filter"):
                tar.extractall(destination, filter="data")
            else:
                tar.extractall(destination)
    except (tarfile.TarError, OSError, EOFError) as exc:
        raise ManifestError(f"Could not unpack package archive: {exc}") from exc


def download_from_registry(
    registry: str, name: str, version: str | None, channel: str | None
) -> Path:
    """Fetch a package from a registry into the local cache and return its directory.

    A cached copy whose hash matches the registry's is used without
    downloading again.
    """
    if version is None:
        raise ManifestError(f'Field "version" required for dependency "{name}"')
    if channel is None:
        raise ManifestError(f'Field "channel" required for dependency "{name}"')
    if not registry.endswith("/"):
        registry += "/"
    parsed = urllib.parse.urlparse(registry)
    if not parsed.scheme or not parsed.netloc:
        raise ManifestError(f"Invalid registry URL: {registry}")
    url = urllib.parse.urljoin(registry, f"get/{name}/{version}/{channel}")
    print(f'Fetching dependency "{name}" from {url} ...')
    body = _fetch(urllib.request.Request(url, method="GET"), url, name, 10)
    try:
        record = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ManifestError(f"Invalid registry response: {exc}") from exc
    record_hash = _record_field(record, "hash")
    record_manifest = _record_field(record, "manifest")
    record_recipe = _record_field(record, "recipe")

    pkg_cache_path = _cache_dir() / "catapult" / "cache" / name / channel
    print(f"pkg_cache_path: {pkg_cache_path}")

    hash_path = pkg_cache_path / "catapult.hash"
    try:
        cached_hash = hash_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        cached_hash = None
    if cached_hash is not None:
        if cached_hash.strip() == record_hash.strip():
            log.debug("Package found in cache. It will not be downloaded: %s", name)
            return pkg_cache_path
        log.info(
            "A cached package was found but its hash does not match the one reported "
            "by the registry. It will be re-downloaded.\n"
            "      Package: %s\n On-disk hash: %s\nRegistry hash: %s",
            name,
            cached_hash.strip(),
            record_hash,
        )

    manifest_bytes = _decode_unpadded(record_manifest, "manifest")
    try:
        manifest_text = manifest_bytes.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ManifestError(f"Dependency manifest of {name} is not UTF-8: {exc}") from exc
    manifest = parse_manifest(manifest_text, f"dependency manifest of {name}")
    source_url = manifest.package.source
    if source_url is None:
        raise ManifestError(f"Dependency manifest did not contain source. ({name})")

    archive = _fetch(source_url, source_url, name, None)
    _unpack(archive, pkg_cache_path)

    recipe_bytes = _decode_unpadded(record_recipe, "recipe")
    try:
        (pkg_cache_path / CATAPULT_TOML).write_bytes(manifest_bytes)
        (pkg_cache_path / BUILD_CATAPULT).write_bytes(recipe_bytes)
        hash_path.write_bytes(record_hash.encode("utf-8"))
    except OSError as exc:
        raise ManifestError(str(exc)) from exc
    return pkg_cache_path