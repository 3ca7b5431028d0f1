from pathlib import Path

import pytest

from catapult.misc import SourcePath
from catapult.object_library import ObjectLibrary
from catapult.static_library import StaticLibrary
from catapult.target import Project, ProjectInfo


def new_static_lib(name, priv_links, pub_links, inc, define):
    return StaticLibrary(
        name=name,
        link_private=list(priv_links),
        link_public=list(pub_links),
        include_dirs_private=[SourcePath(Path("private/include"), "private/include")],
        include_dirs_public=[SourcePath(Path(inc), inc)],
        defines_private=["PRIVATE_DEF"],
        defines_public=[define],
    )


@pytest.fixture
def main_lib():
    leaf_shared = new_static_lib("leaf_shared", [], [], "leaf_shared_inc", "LEAF_SHARED_DEF")
    leaf_priv_priv = new_static_lib("leaf_priv_priv", [], [], "leaf_priv_priv_inc", "LEAF_PRIV_PRIV_DEF")
    leaf_priv_pub = new_static_lib("leaf_priv_pub", [], [], "leaf_priv_pub_inc", "LEAF_PRIV_PUB_DEF")
    leaf_pub_priv = new_static_lib("leaf_pub_priv", [], [], "leaf_pub_priv_inc", "LEAF_PUB_PRIV_DEF")
    leaf_pub_pub = new_static_lib("leaf_pub_pub", [], [], "leaf_pub_pub_inc", "LEAF_PUB_PUB_DEF")
    mid_priv = new_static_lib(
        "mid_priv", [leaf_priv_priv], [leaf_priv_pub, leaf_shared], "mid_priv_inc", "MID_PRIV_DEF"
    )
    mid_pub = new_static_lib(
        "mid_pub", [leaf_pub_priv], [leaf_pub_pub, leaf_shared], "mid_pub_inc", "MID_PUB_DEF"
    )
    lib = ObjectLibrary(
        name="main_lib",
        link_private=[mid_priv],
        link_public=[mid_pub],
        include_dirs_private=[SourcePath(Path("main_priv_inc"), "main_priv_inc")],
        include_dirs_public=[SourcePath(Path("main_pub_inc"), "main_pub_inc")],
        defines_private=["MAIN_PRIV_DEF"],
        defines_public=["MAIN_PUB_DEF"],
    )
    project = Project(
        info=ProjectInfo("test", Path(".")),
        static_libraries=[
            leaf_shared,
            leaf_pub_pub,
            leaf_pub_priv,
            leaf_priv_pub,
            leaf_priv_priv,
            mid_pub,
            mid_priv,
        ],
        object_libraries=[lib],
    )
    return next(x for x in project.object_libraries if x.name == "main_lib")


def test_internal_includes(main_lib):
    includes = main_lib.internal_includes()
    for present in (
        "main_pub_inc",
        "main_priv_inc",
        "mid_pub_inc",
        "leaf_pub_pub_inc",
        "mid_priv_inc",
        "leaf_priv_pub_inc",
        "leaf_shared_inc",
    ):
        assert Path(present) in includes
    assert Path("leaf_pub_priv_inc") not in includes
    assert Path("leaf_priv_priv_inc") not in includes
    assert len(includes) == 7


def test_public_includes(main_lib):
    includes = main_lib.public_includes_recursive()
    for present in ("main_pub_inc", "mid_pub_inc", "leaf_pub_pub_inc", "leaf_shared_inc"):
        assert Path(present) in includes
    for absent in (
        "main_priv_inc",
        "mid_priv_inc",
        "leaf_priv_pub_inc",
        "leaf_pub_priv_inc",
        "leaf_priv_priv_inc",
    ):
        assert Path(absent) not in includes
    assert len(includes) == 4


def test_internal_defines(main_lib):
    defines = main_lib.internal_defines()
    for present in (
        "MAIN_PUB_DEF",
        "MAIN_PRIV_DEF",
        "MID_PUB_DEF",
        "LEAF_PUB_PUB_DEF",
        "MID_PRIV_DEF",
        "LEAF_PRIV_PUB_DEF",
        "LEAF_SHARED_DEF",
    ):
        assert present in defines
    assert "LEAF_PUB_PRIV_DEF" not in defines
    assert "LEAF_PRIV_PRIV_DEF" not in defines
    assert len(defines) == 7


def test_public_defines(main_lib):
    defines = main_lib.public_defines_recursive()
    for present in ("MAIN_PUB_DEF", "MID_PUB_DEF", "LEAF_PUB_PUB_DEF", "LEAF_SHARED_DEF"):
        assert present in defines
    for absent in (
        "MAIN_PRIV_DEF",
        "MID_PRIV_DEF",
        "LEAF_PRIV_PUB_DEF",
        "LEAF_PUB_PRIV_DEF",
        "LEAF_PRIV_PRIV_DEF",
    ):
        assert absent not in defines
    assert len(defines) == 4


def test_internal_defines_order(main_lib):
    assert main_lib.internal_defines() == [
        "LEAF_PUB_PUB_DEF",
        "LEAF_SHARED_DEF",
        "MID_PUB_DEF",
        "MAIN_PUB_DEF",
        "MAIN_PRIV_DEF",
        "LEAF_PRIV_PUB_DEF",
        "MID_PRIV_DEF",
    ]


def test_private_links_are_still_linked(main_lib):
    names = [link.name for link in main_lib.internal_links()]
    assert names[:2] == ["mid_priv", "mid_pub"]
    assert "leaf_priv_priv" in names
    assert "leaf_pub_priv" in names
    assert names.count("leaf_shared") == 2


def test_public_links(main_lib):
    assert [link.name for link in main_lib.public_links()] == ["mid_pub"]


def test_link_flags_only_from_public_links():
    public_dep = StaticLibrary(name="pub", link_flags_public=["-lz"])
    private_dep = StaticLibrary(name="priv", link_flags_public=["-lssl"])
    lib = ObjectLibrary(name="obj", link_public=[public_dep], link_private=[private_dep])
    assert lib.public_link_flags_recursive() == ["-lz"]
    assert lib.internal_link_flags() == ["-lz"]


def test_output_name():
    assert ObjectLibrary(name="objs").output_name() == "objs"
    assert ObjectLibrary(name="objs", artifact_name="renamed").output_name() == "renamed"


def test_object_library_can_link_object_library():
    inner = ObjectLibrary(
        name="inner",
        include_dirs_public=[SourcePath(Path("inner_inc"), "inner_inc")],
        defines_public=["INNER"],
    )
    outer = ObjectLibrary(name="outer", link_public=[inner])
    assert outer.public_includes_recursive() == [Path("inner_inc")]
    assert outer.public_defines_recursive() == ["INNER"]
    assert outer.public_links_recursive() == [inner]