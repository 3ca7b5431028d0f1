"""Targets as declared by a recipe, and their resolution into a project tree.

Recipe targets keep paths as written and refer to each other directly.
Resolution joins paths to the project directory, classifies sources and
converts each recipe target exactly once. Targets are keyed by identity,
so a library linked from several places becomes a single resolved object.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import Any, Union

from catapult.misc import Sources, join_parent
from catapult.object_library import ObjectLibrary
from catapult.recipe_fmt import format_link_targets, format_strings
from catapult.static_library import StaticLibrary
from catapult.target import LinkTarget, Project, ProjectInfo

RecipeLinkTarget = Union["RecipeStaticLibrary", "RecipeObjectLibrary"]


class RecipeError(ValueError):
    """A recipe target could not be resolved."""


class LinkTargetCache:
    """Resolved libraries, keyed by the recipe target they came from."""

    def __init__(self) -> None:
        self._static: dict[RecipeStaticLibrary, StaticLibrary] = {}
        self._object: dict[RecipeObjectLibrary, ObjectLibrary] = {}

    def get_static(self, key: Any) -> StaticLibrary | None:
        return self._static.get(key)

    def get_object(self, key: Any) -> ObjectLibrary | None:
        return self._object.get(key)

    def get(self, key: Any) -> LinkTarget | None:
        """Return the resolved library for ``key`` of any kind, or None."""
        found = self.get_static(key)
        if found is not None:
            return found
        return self.get_object(key)

    def insert_static(self, key: RecipeStaticLibrary, value: StaticLibrary) -> None:
        self._static[key] = value

    def insert_object(self, key: RecipeObjectLibrary, value: ObjectLibrary) -> None:
        self._object[key] = value


def _resolve_links(
    links: list[RecipeLinkTarget],
    parent_path: Path,
    link_map: LinkTargetCache,
    generators: Mapping[str, Any],
) -> list[LinkTarget]:
    resolved: list[LinkTarget] = []
    for link in links:
        cached = link_map.get(link)
        if cached is None:
            cached = link.as_link_target(parent_path, link_map, generators)
        resolved.append(cached)
    return resolved


def _lookup_generator(generator_id: str | None, generators: Mapping[str, Any]) -> Any:
    if generator_id is None:
        return None
    try:
        return generators[generator_id]
    except KeyError:
        raise RecipeError(f"Could not find generator id in map: {generator_id}") from None


def _classify(sources: list[str], parent_path: Path) -> Sources:
    try:
        return Sources.from_names(sources, parent_path)
    except ValueError as exc:
        raise RecipeError(str(exc)) from exc


def _generated(generator_id: str | None) -> str:
    return "(generated)" if generator_id is not None else "None"


@dataclass(eq=False)
class RecipeStaticLibrary:
    """A static library as declared in a recipe."""

    name: str
    sources: list[str] = field(default_factory=list)
    link_private: list[RecipeLinkTarget] = field(default_factory=list)
    link_public: list[RecipeLinkTarget] = field(default_factory=list)
    include_dirs_public: list[str] = field(default_factory=list)
    include_dirs_private: list[str] = field(default_factory=list)
    defines_private: list[str] = field(default_factory=list)
    defines_public: list[str] = field(default_factory=list)
    link_flags_public: list[str] = field(default_factory=list)
    generator_vars: str | None = None
    output_name: str | None = None
    project: RecipeProject | None = field(default=None, repr=False)

    def __str__(self) -> str:
        return (
            "StaticLibrary {\n"
            f'  name: "{self.name}",\n'
            f"  sources: [{format_strings(self.sources)}],\n"
            f"  link_private: [{format_link_targets(self.link_private)}],\n"
            f"  link_public: [{format_link_targets(self.link_public)}],\n"
            f"  include_dirs_public: [{format_strings(self.include_dirs_public)}],\n"
            f"  include_dirs_private: [{format_strings(self.include_dirs_private)}],\n"
            f"  defines_private: [{format_strings(self.defines_private)}],\n"
            f"  defines_public: [{format_strings(self.defines_public)}],\n"
            f"  link_flags_public: [{format_strings(self.link_flags_public)}],\n"
            f"  generator_vars: {_generated(self.generator_vars)},\n"
            "}"
        )

    def label(self) -> str:
        """The target's label as recipes refer to it."""
        return f":{self.name}"

    def public_includes_recursive(self) -> list[str]:
        """Include directories reported to recipes for this library."""
        return list(self.include_dirs_private)

    def as_library(
        self,
        parent_path: str | PathLike[str],
        link_map: LinkTargetCache,
        generators: Mapping[str, Any],
    ) -> StaticLibrary:
        """Resolve this declaration against ``parent_path``."""
        parent = Path(parent_path)
        return StaticLibrary(
            name=self.name,
            sources=_classify(self.sources, parent),
            link_private=_resolve_links(self.link_private, parent, link_map, generators),
            link_public=_resolve_links(self.link_public, parent, link_map, generators),
            include_dirs_public=[join_parent(parent, d) for d in self.include_dirs_public],
            include_dirs_private=[join_parent(parent, d) for d in self.include_dirs_private],
            defines_private=list(self.defines_private),
            defines_public=list(self.defines_public),
            link_flags_public=list(self.link_flags_public),
            generator_vars=_lookup_generator(self.generator_vars, generators),
            artifact_name=self.output_name,
        )

    def as_link_target(
        self,
        parent_path: str | PathLike[str],
        link_map: LinkTargetCache,
        generators: Mapping[str, Any],
    ) -> StaticLibrary:
        """Resolve this library and remember the result in ``link_map``."""
        library = self.as_library(parent_path, link_map, generators)
        link_map.insert_static(self, library)
        return library


@dataclass(eq=False)
class RecipeObjectLibrary:
    """An object library as declared in a recipe."""

    name: str
    sources: list[str] = field(default_factory=list)
    link_private: list[RecipeLinkTarget] = field(default_factory=list)
    link_public: list[RecipeLinkTarget] = field(default_factory=list)
    include_dirs_private: list[str] = field(default_factory=list)
    include_dirs_public: list[str] = field(default_factory=list)
    defines_private: list[str] = field(default_factory=list)
    defines_public: list[str] = field(default_factory=list)
    link_flags_public: list[str] = field(default_factory=list)
    generator_vars: str | None = None
    output_name: str | None = None
    project: RecipeProject | None = field(default=None, repr=False)

    def __str__(self) -> str:
        return (
            "ObjectLibrary {\n"
            f'  name: "{self.name}",\n'
            f"  sources: [{format_strings(self.sources)}],\n"
            f"  link_private: [{format_link_targets(self.link_private)}],\n"
            f"  link_public: [{format_link_targets(self.link_public)}],\n"
            f"  include_dirs_private: [{format_strings(self.include_dirs_private)}],\n"
            f"  include_dirs_public: [{format_strings(self.include_dirs_public)}],\n"
            f"  defines_private: [{format_strings(self.defines_private)}],\n"
            f"  defines_public: [{format_strings(self.defines_public)}],\n"
            f"  link_flags_public: [{format_strings(self.link_flags_public)}],\n"
            f"  generator_vars: {_generated(self.generator_vars)},\n"
            "}"
        )

    def label(self) -> str:
        """The target's label as recipes refer to it."""
        return f":{self.name}"

    def public_includes_recursive(self) -> list[str]:
        """Include directories reported to recipes for this library."""
        return list(self.include_dirs_private)

    def as_library(
        self,
        parent_path: str | PathLike[str],
        link_map: LinkTargetCache,
        generators: Mapping[str, Any],
    ) -> ObjectLibrary:
        """Resolve this declaration against ``parent_path``."""
        parent = Path(parent_path)
        return ObjectLibrary(
            name=self.name,
            sources=_classify(self.sources, parent),
            link_private=_resolve_links(self.link_private, parent, link_map, generators),
            link_public=_resolve_links(self.link_public, parent, link_map, generators),
            include_dirs_private=[join_parent(parent, d) for d in self.include_dirs_private],
            include_dirs_public=[join_parent(parent, d) for d in self.include_dirs_public],
            defines_private=list(self.defines_private),
            defines_public=list(self.defines_public),
            link_flags_public=list(self.link_flags_public),
            generator_vars=_lookup_generator(self.generator_vars, generators),
            artifact_name=self.output_name,
        )

    def as_link_target(
        self,
        parent_path: str | PathLike[str],
        link_map: LinkTargetCache,
        generators: Mapping[str, Any],
    ) -> ObjectLibrary:
        """Resolve this library and remember the result in ``link_map``."""
        library = self.as_library(parent_path, link_map, generators)
        link_map.insert_object(self, library)
        return library


@dataclass(eq=False)
class RecipeProject:
    """A project as declared by its recipe, with its dependency projects."""

    name: str
    path: Path
    dependencies: list[RecipeProject] = field(default_factory=list)
    static_libraries: list[RecipeStaticLibrary] = field(default_factory=list)
    object_libraries: list[RecipeObjectLibrary] = field(default_factory=list)
    generator_names: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return "Project {}"

    def target(self, name: str) -> RecipeLinkTarget | None:
        """Return the library called ``name``, static libraries first, or None."""
        for library in (*self.static_libraries, *self.object_libraries):
            if library.name == name:
                return library
        return None

    def target_names(self) -> list[str]:
        """Names of the project's libraries, static ones first."""
        return [library.name for library in (*self.static_libraries, *self.object_libraries)]

    def into_project(self) -> Project:
        """Resolve this project and its dependencies into a project tree."""
        return self._as_project(LinkTargetCache())

    def _as_project(self, link_map: LinkTargetCache) -> Project:
        dependencies = [dep._as_project(link_map) for dep in self.dependencies]

        static_libraries: list[StaticLibrary] = []
        for recipe_static in self.static_libraries:
            static = link_map.get_static(recipe_static)
            if static is None:
                static = recipe_static.as_library(self.path, link_map, self.generator_names)
                link_map.insert_static(recipe_static, static)
            static_libraries.append(static)

        object_libraries: list[ObjectLibrary] = []
        for recipe_object in self.object_libraries:
            obj = link_map.get_object(recipe_object)
            if obj is None:
                obj = recipe_object.as_library(self.path, link_map, self.generator_names)
                link_map.insert_object(recipe_object, obj)
            object_libraries.append(obj)

        project = Project(
            info=ProjectInfo(name=self.name, path=Path(self.path)),
            dependencies=dependencies,
            static_libraries=list(static_libraries),
            object_libraries=list(object_libraries),
        )
        for library in (*static_libraries, *object_libraries):
            library.project = project
        return project