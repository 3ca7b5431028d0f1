import base64
import io
import json
import logging
import tarfile
from unittest import mock

import pytest

from catapult.manifest import (
    BUILD_CATAPULT,
    CATAPULT_TOML,
    DependencyManifest,
    Manifest,
    ManifestError,
    ManifestOptions,
    PackageManifest,
    download_from_registry,
    global_options_from_manifest,
    map_to_pkg_opt_map,
    merge_package_options,
    parse_manifest,
    read_manifest,
)

BASIC = """
[package]
name = "test_one"

[dependencies]
zeta = { path = "submodules/zeta" }
alpha = { registry = "https://registry.example.com", version = "1.0", channel = "stable", options = { fast = true } }

[options]
c_standard = "17"
cpp_standard = "17"
position_independent_code = true

[package_options]
level = 3
"""


def test_parse_manifest_fields():
    manifest = parse_manifest(BASIC)
    assert manifest.package == PackageManifest(name="test_one")
    assert list(manifest.dependencies) == ["alpha", "zeta"]
    assert manifest.dependencies["zeta"] == DependencyManifest(path="submodules/zeta")
    assert manifest.dependencies["alpha"].options == {"fast": True}
    assert manifest.package_options == {"level": 3}


def test_parse_manifest_minimal_has_no_optional_parts():
    manifest = parse_manifest('[package]\nname = "p"\n')
    assert manifest == Manifest(package=PackageManifest(name="p"))


def test_parse_manifest_missing_name():
    with pytest.raises(ManifestError, match="Error reading origin"):
        parse_manifest("[package]\n", "origin")


def test_parse_manifest_invalid_toml():
    with pytest.raises(ManifestError, match="Error reading"):
        parse_manifest("[package\n")


def test_parse_manifest_rejects_array_option():
    with pytest.raises(ManifestError, match="bool|int|float|str"):
        parse_manifest('[package]\nname = "p"\n[package_options]\nbad = [1]\n')


def test_read_manifest(tmp_path):
    (tmp_path / CATAPULT_TOML).write_text(BASIC)
    assert read_manifest(tmp_path).package.name == "test_one"


def test_read_manifest_missing_file(tmp_path):
    with pytest.raises(ManifestError, match="Error opening"):
        read_manifest(tmp_path)


def test_map_to_pkg_opt_map_parses_literals():
    result = map_to_pkg_opt_map({"pkg": {"flag": "true", "n": "3", "s": '"x"'}})
    assert result == {"pkg": {"flag": True, "n": 3, "s": "x"}}


def test_map_to_pkg_opt_map_rejects_bad_value():
    with pytest.raises(ManifestError, match="Could not deserialize package option"):
        map_to_pkg_opt_map({"pkg": {"bad": "[1, 2]"}})


def test_global_options_from_manifest():
    options = global_options_from_manifest(parse_manifest(BASIC))
    assert options.c_standard == "17"
    assert options.cpp_standard == "17"
    assert options.position_independent_code is True


def test_global_options_default_to_none():
    options = global_options_from_manifest(Manifest(package=PackageManifest(name="p")))
    assert (options.c_standard, options.cpp_standard, options.position_independent_code) == (
        None,
        None,
        None,
    )


def test_merge_package_options_precedence():
    manifest = Manifest(
        package=PackageManifest(name="p"),
        package_options={"a": 1, "b": 2, "c": 3},
        options=ManifestOptions(),
    )
    result = merge_package_options(manifest, {"p": {"b": 20}}, {"a": 10, "b": 99})
    assert result == {"a": 10, "b": 20, "c": 3}


def test_merge_package_options_ignores_unknown(caplog):
    manifest = Manifest(package=PackageManifest(name="p"), package_options={"a": 1})
    with caplog.at_level(logging.ERROR, logger="catapult.manifest"):
        result = merge_package_options(manifest, {"p": {"unknown": True}})
    assert result == {"a": 1}
    assert 'does not provide option "unknown"' in caplog.text


class _Response:
    def __init__(self, status, body):
        self.status = status
        self._body = body

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def _unpadded(data: bytes) -> str:
    return base64.b64encode(data).rstrip(b"=").decode()


def _tarball(files):
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, content in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            tar.addfile(info, io.BytesIO(content))
    return buf.getvalue()


REGISTRY = "https://registry.example.com"
RECORD_URL = "https://registry.example.com/get/zstd/1.5/stable"
SOURCE_URL = "https://files.example.com/zstd.tar.gz"
DEP_MANIFEST = f'[package]\nname = "zstd"\nsource = "{SOURCE_URL}"\n'.encode()


def _record(manifest=DEP_MANIFEST, hash_="abc"):
    return json.dumps(
        {"hash": hash_, "manifest": _unpadded(manifest), "recipe": _unpadded(b"# recipe\n")}
    ).encode()


def _routes(record=None, source_status=200):
    return {
        RECORD_URL: (200, record or _record()),
        SOURCE_URL: (source_status, _tarball({"zstd.c": b"int x;\n"})),
    }


def _fake(routes, calls):
    def urlopen(req, *args, **kwargs):
        url = getattr(req, "full_url", req)
        calls.append(url)
        status, body = routes[url]
        return _Response(status, body)

    return urlopen


@pytest.fixture
def cache_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CACHE_HOME", str(home / ".cache"))
    monkeypatch.setenv("LOCALAPPDATA", str(home / "AppData"))
    return home


def test_download_requires_version():
    with pytest.raises(ManifestError, match='Field "version" required'):
        download_from_registry(REGISTRY, "zstd", None, "stable")


def test_download_requires_channel():
    with pytest.raises(ManifestError, match='Field "channel" required'):
        download_from_registry(REGISTRY, "zstd", "1.5", None)


def test_download_unpacks_into_cache(cache_home):
    calls = []
    with mock.patch("urllib.request.urlopen", side_effect=_fake(_routes(), calls)):
        path = download_from_registry(REGISTRY, "zstd", "1.5", "stable")
    assert path.parts[-4:] == ("catapult", "cache", "zstd", "stable")
    assert path.is_relative_to(cache_home)
    assert (path / "zstd.c").read_bytes() == b"int x;\n"
    assert (path / CATAPULT_TOML).read_bytes() == DEP_MANIFEST
    assert (path / BUILD_CATAPULT).read_bytes() == b"# recipe\n"
    assert calls == [RECORD_URL, SOURCE_URL]


def test_download_uses_cache_when_hash_matches(cache_home):
    calls = []
    with mock.patch("urllib.request.urlopen", side_effect=_fake(_routes(), calls)):
        first = download_from_registry(REGISTRY, "zstd", "1.5", "stable")
        second = download_from_registry(REGISTRY, "zstd", "1.5", "stable")
    assert first == second
    assert calls == [RECORD_URL, SOURCE_URL, RECORD_URL]


def test_download_bad_source_status(cache_home):
    calls = []
    routes = _routes(source_status=404)
    with mock.patch("urllib.request.urlopen", side_effect=_fake(routes, calls)):
        with pytest.raises(ManifestError, match="returned status 404"):
            download_from_registry(REGISTRY, "zstd", "1.5", "stable")


def test_download_manifest_without_source(cache_home):
    calls = []
    routes = _routes(record=_record(manifest=b'[package]\nname = "zstd"\n'))
    with mock.patch("urllib.request.urlopen", side_effect=_fake(routes, calls)):
        with pytest.raises(ManifestError, match="did not contain source"):
            download_from_registry(REGISTRY, "zstd", "1.5", "stable")
    assert calls == [RECORD_URL]