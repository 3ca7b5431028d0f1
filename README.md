# catapult

A Python library for describing and resolving C and C++ builds: it models
build targets and how their include directories, defines, link flags and
links propagate; identifies compilers, linkers and assemblers; reads
toolchain files and package manifests; and fetches packages from a
registry into a local cache.

A package is described by two files in its source directory:

- `catapult.toml`, the manifest: the package name, its dependencies
  (by registry or by local path), global options (`c_standard`,
  `cpp_standard`, `position_independent_code`) and the options the package
  offers to packages that depend on it (`package_options`).
- `build.catapult`, the recipe, which declares the libraries the package
  builds.

## Modules

| Module | Contents |
| --- | --- |
| `catapult.misc` | `SourcePath`, `Sources`, `join_parent`, the `is_*_source` checks, `unique` |
| `catapult.target` | The `Target` and `LinkTarget` interfaces, `Project`, `ProjectInfo` |
| `catapult.static_library` | `StaticLibrary` |
| `catapult.object_library` | `ObjectLibrary` |
| `catapult.compilers` | `Clang`, `Gcc`, `Emscripten`, `Msvc`, `Nasm` and their flags |
| `catapult.detect` | Recognising a tool from its `-v` output; `identify_compiler`, `identify_linker`, `identify_assembler` |
| `catapult.toolchain` | `get_toolchain`, `toolchain_from_dict`, `Toolchain`, `Profile` |
| `catapult.recipe` | `RecipeStaticLibrary`, `RecipeObjectLibrary`, `RecipeProject` and their resolution into a `Project` |
| `catapult.recipe_fmt` | `format_strings`, `format_link_targets` |
| `catapult.api` | `RecipeApi`: the declaration functions a recipe calls |
| `catapult.options` | `GlobalOptions`, `PackageOptions`, `Global`, `Version`, `parse_pkg_opt` |
| `catapult.context` | `Context`, `ContextCompiler`, `GeneratorVars`, `eval_vars` |
| `catapult.manifest` | `read_manifest`, `parse_manifest`, `merge_package_options`, `map_to_pkg_opt_map`, `download_from_registry` |

## Examples

Sort source files by kind. `.c`/`.C` are C, `.cpp`/`.cc` C++, `.h`/`.hpp`
headers and `.asm` NASM; any other extension raises `ValueError`. Paths that
exist are made canonical; a missing path is kept as joined and a warning is
logged.

```python
from catapult.misc import Sources

sources = Sources.from_names(["main.cpp", "util.c", "util.h", "boot.asm"], ".")
print([src.name for src in sources])  # ['util.c', 'main.cpp', 'util.h', 'boot.asm']
```

Declare libraries and resolve them into a project:

```python
from pathlib import Path
from catapult.api import RecipeApi
from catapult.recipe import RecipeProject

recipe = RecipeProject(name="demo", path=Path("."))
api = RecipeApi(recipe)
core = api.add_static_library(
    "core", ["core.cpp"], include_dirs_public=["include"], defines_public=["CORE"]
)
objs = api.add_object_library("objs", ["objs.c"], link_public=[core])

project = recipe.into_project()
lib = project.object_libraries[0]
print(lib.public_defines_recursive())   # ['CORE']
print([l.name for l in lib.internal_links()])  # ['core']
```

Each recipe library is resolved once; a library linked from several places
becomes a single resolved object. Links that are not recipe libraries raise
`RecipeError`.

Recognise a compiler from the text it prints for `-v`, without running it:

```python
from catapult.detect import parse_compiler_output

output = "clang version 16.0.1\nTarget: x86_64-pc-windows-msvc\n"
compiler = parse_compiler_output(["clang"], output)
print(compiler.id, compiler.version, compiler.target)  # clang 16.0.1 x86_64-pc-windows-msvc
print(compiler.position_independent_code_flag())       # None for Windows targets
print(compiler.cpp_std_flag("17"))                     # -std=c++17
```

Clang is tried first, then GCC, then Emscripten; anything else raises
`IdentificationError`. An unknown language standard raises
`UnsupportedStandardError`. `Msvc` is a stand-in that only reports its
identity; asking it for commands or flags raises
`UnsupportedOperationError`.

Load a toolchain file. Compilers, the linker and the NASM assembler listed
in it are run once with `-v` to identify them; with `for_msvc=True` both
compilers are the `Msvc` stand-in and are not run.

```python
from catapult.toolchain import get_toolchain, ToolchainError

try:
    toolchain = get_toolchain("toolchain.toml", for_msvc=False)
except ToolchainError as exc:
    print(exc)
```

Valid `msvc_platforms` are `ARM`, `ARM64`, `Win32` and `x64`; valid
`xcode_platforms` are `arm64` and `x86_64`.

Read a manifest and work out a package's options:

```python
from catapult.manifest import (
    read_manifest, global_options_from_manifest, map_to_pkg_opt_map, merge_package_options,
)

manifest = read_manifest(".")
options = global_options_from_manifest(manifest)
requested = map_to_pkg_opt_map({manifest.package.name: {"use_simd": "true"}})
print(merge_package_options(manifest, requested))
```

Option values are given as TOML literals and become `bool`, `int`, `float`
or `str`. A package's declared defaults are replaced by values requested by
the depending package, which in turn give way to values given for the
package itself; options the package does not declare are logged as errors
and ignored.

`download_from_registry(registry, name, version, channel)` asks the
registry for `get/<name>/<version>/<channel>`, and unpacks the package's
source archive, manifest and recipe into `catapult/cache/<name>/<channel>`
under the user's cache directory. A cached copy whose `catapult.hash`
matches the registry's hash is used without downloading again.

`Global.from_toolchain` describes the global options, package options and
toolchain (compiler ids and parsed versions) the way a recipe reads them
through `GLOBAL`; `eval_vars` calls a generator function with a `Context`
and checks that it returned `GeneratorVars`.

## Link propagation

For a library that links `mid_pub` publicly and `mid_priv` privately:

- its own public include directories and defines, and those of `mid_pub`
  and of everything `mid_pub` links publicly, are visible to its
  dependents;
- `mid_priv`'s public properties are used when compiling the library
  itself, but are not visible to its dependents;
- anything linked privately further down is visible to neither;
- include directories, defines and link flags are deduplicated, keeping
  the first occurrence;
- every library reached through any link, public or private, is in the
  list of libraries to link, direct links first (that list is not
  deduplicated).

## What the package does not do

- It does not read or run `build.catapult` files: recipes are declared by
  calling `RecipeApi` from Python.
- It has no executables or interface libraries in recipes; `Project` has
  fields for them, but resolution fills only static and object libraries.
- It does not fetch dependencies from git, and it does not walk a
  manifest's dependencies on its own: reading each manifest, downloading
  and merging options are separate functions.
- It does not write build files or invoke the compilers to build anything,
  and it has no command-line program.

## Running the tests

Install the `test` extra and run `pytest` from the project root.