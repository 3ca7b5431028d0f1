from pathlib import Path

import pytest

from catapult.misc import (
    SourcePath,
    Sources,
    is_c_source,
    is_cpp_source,
    is_h_source,
    is_nasm_source,
    join_parent,
    unique,
)


@pytest.mark.parametrize(
    "name, c, cpp, h, nasm",
    [
        ("a.c", True, False, False, False),
        ("a.C", True, False, False, False),
        ("a.cpp", False, True, False, False),
        ("a.cc", False, True, False, False),
        ("a.h", False, False, True, False),
        ("a.hpp", False, False, True, False),
        ("a.asm", False, False, False, True),
        ("a.txt", False, False, False, False),
    ],
)
def test_classifiers(name, c, cpp, h, nasm):
    assert (is_c_source(name), is_cpp_source(name), is_h_source(name), is_nasm_source(name)) == (
        c,
        cpp,
        h,
        nasm,
    )


def test_unique_keeps_first_occurrence_order():
    assert unique(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]


def test_unique_of_empty():
    assert unique([]) == []


def test_join_parent_existing_is_canonical(tmp_path):
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "x.c").write_text("")
    result = join_parent(tmp_path / "sub" / "..", "sub/x.c")
    assert result.full == (tmp_path / "sub" / "x.c").resolve()
    assert result.name == "sub/x.c"


def test_join_parent_missing_keeps_joined(tmp_path):
    result = join_parent(tmp_path, "missing.c")
    assert result == SourcePath(tmp_path / "missing.c", "missing.c")


def test_join_parent_absolute_name_replaces_parent(tmp_path):
    target = tmp_path / "abs.cpp"
    target.write_text("")
    result = join_parent(Path("somewhere/else"), str(target))
    assert result.full == target.resolve()


def test_from_names_groups_by_kind(tmp_path):
    names = ["a.c", "b.cpp", "c.h", "d.asm", "e.cc"]
    for n in names:
        (tmp_path / n).write_text("")
    sources = Sources.from_names(names, tmp_path)
    assert [s.name for s in sources.c] == ["a.c"]
    assert [s.name for s in sources.cpp] == ["b.cpp", "e.cc"]
    assert [s.name for s in sources.h] == ["c.h"]
    assert [s.name for s in sources.nasm] == ["d.asm"]
    assert sources.cpp[0].full == (tmp_path / "b.cpp").resolve()


def test_from_names_unknown_type(tmp_path):
    with pytest.raises(ValueError, match="Unknown source type: notes.txt"):
        Sources.from_names(["a.c", "notes.txt"], tmp_path)


def test_iteration_order_is_by_kind(tmp_path):
    sources = Sources.from_names(["z.asm", "y.h", "x.cpp", "w.c"], tmp_path)
    assert [s.name for s in sources] == ["w.c", "x.cpp", "y.h", "z.asm"]


def test_extended_with_concatenates_without_mutating(tmp_path):
    first = Sources.from_names(["a.c", "b.cpp"], tmp_path)
    second = Sources.from_names(["c.c", "d.h"], tmp_path)
    combined = first.extended_with(second)
    assert [s.name for s in combined.c] == ["a.c", "c.c"]
    assert [s.name for s in combined.h] == ["d.h"]
    assert len(list(combined)) == len(list(first)) + len(list(second))
    assert [s.name for s in first.c] == ["a.c"]


def test_default_sources_empty():
    assert list(Sources()) == []