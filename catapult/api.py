"""Functions a recipe calls to declare the targets of its project."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import Any

from catapult.context import GeneratorVars
from catapult.recipe import (
    RecipeError,
    RecipeLinkTarget,
    RecipeObjectLibrary,
    RecipeProject,
    RecipeStaticLibrary,
)

GEN_PREFIX = "__gen_"


def get_link_targets(links: Iterable[Any]) -> list[RecipeLinkTarget]:
    """Check that every link is a library declared by a recipe."""
    targets: list[RecipeLinkTarget] = []
    for link in links:
        if not isinstance(link, (RecipeStaticLibrary, RecipeObjectLibrary)):
            raise RecipeError(f"Could not match link {link}: {type(link).__name__}")
        targets.append(link)
    return targets


def _strings(items: Iterable[Any], parameter: str) -> list[str]:
    values = list(items)
    for value in values:
        if not isinstance(value, str):
            raise TypeError(
                f'"{parameter}" must be a list of strings, got {type(value).__name__}'
            )
    return values


class RecipeApi:
    """The declaration functions bound to the project a recipe describes."""

    def __init__(self, project: RecipeProject) -> None:
        self.project = project

    def _register_generator(self, value: Any) -> str | None:
        if value is None:
            return None
        generator_id = GEN_PREFIX + str(uuid.uuid4())
        self.project.generator_names[generator_id] = value
        return generator_id

    def add_static_library(
        self,
        name: str,
        sources: Iterable[str],
        link_private: Iterable[Any] = (),
        link_public: Iterable[Any] = (),
        include_dirs_private: Iterable[str] = (),
        include_dirs_public: Iterable[str] = (),
        defines_private: Iterable[str] = (),
        defines_public: Iterable[str] = (),
        link_flags_public: Iterable[str] = (),
        generator_vars: Any = None,
    ) -> RecipeStaticLibrary:
        """Declare a static library and add it to the project."""
        library = RecipeStaticLibrary(
            name=name,
            sources=_strings(sources, "sources"),
            link_private=get_link_targets(link_private),
            link_public=get_link_targets(link_public),
            include_dirs_private=_strings(include_dirs_private, "include_dirs_private"),
            include_dirs_public=_strings(include_dirs_public, "include_dirs_public"),
            defines_private=_strings(defines_private, "defines_private"),
            defines_public=_strings(defines_public, "defines_public"),
            link_flags_public=_strings(link_flags_public, "link_flags_public"),
            generator_vars=self._register_generator(generator_vars),
            project=self.project,
        )
        self.project.static_libraries.append(library)
        return library

    def add_object_library(
        self,
        name: str,
        sources: Iterable[str],
        link_private: Iterable[Any] = (),
        link_public: Iterable[Any] = (),
        include_dirs_private: Iterable[str] = (),
        include_dirs_public: Iterable[str] = (),
        defines_private: Iterable[str] = (),
        defines_public: Iterable[str] = (),
        link_flags_public: Iterable[str] = (),
        generator_vars: Any = None,
    ) -> RecipeObjectLibrary:
        """Declare an object library and add it to the project."""
        library = RecipeObjectLibrary(
            name=name,
            sources=_strings(sources, "sources"),
            link_private=get_link_targets(link_private),
            link_public=get_link_targets(link_public),
            include_dirs_private=_strings(include_dirs_private, "include_dirs_private"),
            include_dirs_public=_strings(include_dirs_public, "include_dirs_public"),
            defines_private=_strings(defines_private, "defines_private"),
            defines_public=_strings(defines_public, "defines_public"),
            link_flags_public=_strings(link_flags_public, "link_flags_public"),
            generator_vars=self._register_generator(generator_vars),
            project=self.project,
        )
        self.project.object_libraries.append(library)
        return library

    def generator_vars(
        self,
        sources: Iterable[str] = (),
        include_dirs: Iterable[str] = (),
        defines: Iterable[str] = (),
        link_flags: Iterable[str] = (),
    ) -> GeneratorVars:
        """Build the value a generator function returns."""
        return GeneratorVars(
            sources=_strings(sources, "sources"),
            include_dirs=_strings(include_dirs, "include_dirs"),
            defines=_strings(defines, "defines"),
            link_flags=_strings(link_flags, "link_flags"),
        )