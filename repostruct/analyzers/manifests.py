"""Shallow manifest readers.

Extracts dependency names from package manifests without interpreting
version constraints. Every parser is forgiving: malformed content yields an
empty key set rather than an error.
"""

import json
import re
import tomllib
from collections.abc import Callable, Iterable
from fnmatch import fnmatchcase
from pathlib import Path

from repostruct.logging import logger

# Manifests larger than this are not read
MAX_MANIFEST_BYTES = 512 * 1024

_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")
_GO_REQUIRE = re.compile(r"^\s*(?:require\s+)?([\w.\-]+\.[\w]+(?:/[\w.\-~]+)+)\s+v[\w.\-+]+", re.MULTILINE)
_GEM = re.compile(r"""^\s*gem\s+['"]([^'"]+)['"]""", re.MULTILINE)
_POM_ID = re.compile(r"<(?:groupId|artifactId)>\s*([^<\s]+)\s*</(?:groupId|artifactId)>")
_GRADLE_COORD = re.compile(r"""['"]([\w.\-]+):([\w.\-]+)(?::[^'"]*)?['"]""")
_GRADLE_PLUGIN = re.compile(r"""\bid\s*\(?\s*['"]([\w.\-]+)['"]""")


def normalize_python_name(name: str) -> str:
    """PEP 503 normalization: lower-case, runs of -_. become a single dash."""
    return re.sub(r"[-_.]+", "-", name).lower()


def _requirement_names(lines: Iterable[str]) -> set[str]:
    names: set[str] = set()
    for line in lines:
        line = line.split("#", 1)[0].strip()
        if not line or line.startswith("-"):
            continue
        match = _REQUIREMENT_NAME.match(line)
        if match:
            names.add(normalize_python_name(match.group(1)))
    return names


def parse_requirements(content: str) -> set[str]:
    """Parse requirements.txt style content."""
    return _requirement_names(content.splitlines())


def parse_pyproject(content: str) -> set[str]:
    """Parse PEP 621, Poetry and dependency-group declarations."""
    data = tomllib.loads(content)
    names: set[str] = set()

    project = data.get("project", {})
    names |= _requirement_names(project.get("dependencies", []))
    for extra in project.get("optional-dependencies", {}).values():
        names |= _requirement_names(extra)

    for group in data.get("dependency-groups", {}).values():
        names |= _requirement_names(item for item in group if isinstance(item, str))

    poetry = data.get("tool", {}).get("poetry", {})
    names.update(normalize_python_name(key) for key in poetry.get("dependencies", {}))
    names.update(normalize_python_name(key) for key in poetry.get("dev-dependencies", {}))
    for group in poetry.get("group", {}).values():
        names.update(normalize_python_name(key) for key in group.get("dependencies", {}))

    names.discard("python")
    return names


def parse_pipfile(content: str) -> set[str]:
    data = tomllib.loads(content)
    names: set[str] = set()
    for section in ("packages", "dev-packages"):
        names.update(normalize_python_name(key) for key in data.get(section, {}))
    return names


def parse_package_json(content: str) -> set[str]:
    """Dependency names across all npm dependency maps."""
    data = json.loads(content)
    names: set[str] = set()
    for section in ("dependencies", "devDependencies", "peerDependencies", "optionalDependencies"):
        section_data = data.get(section, {})
        if isinstance(section_data, dict):
            names.update(key.lower() for key in section_data)
    return names


def parse_composer_json(content: str) -> set[str]:
    data = json.loads(content)
    names: set[str] = set()
    for section in ("require", "require-dev"):
        section_data = data.get(section, {})
        if isinstance(section_data, dict):
            names.update(key.lower() for key in section_data)
    return names


def parse_cargo_toml(content: str) -> set[str]:
    data = tomllib.loads(content)
    names: set[str] = set()
    for section in ("dependencies", "dev-dependencies", "build-dependencies"):
        names.update(key.lower() for key in data.get(section, {}))
    names.update(key.lower() for key in data.get("workspace", {}).get("dependencies", {}))
    return names


def parse_go_mod(content: str) -> set[str]:
    return {match.lower() for match in _GO_REQUIRE.findall(content)}


def parse_gemfile(content: str) -> set[str]:
    return {match.lower() for match in _GEM.findall(content)}


def parse_pom_xml(content: str) -> set[str]:
    """Group and artifact ids; no XML schema handling."""
    return {match.lower() for match in _POM_ID.findall(content)}


def parse_gradle(content: str) -> set[str]:
    names: set[str] = set()
    for group, artifact in _GRADLE_COORD.findall(content):
        names.add(group.lower())
        names.add(artifact.lower())
    names.update(plugin.lower() for plugin in _GRADLE_PLUGIN.findall(content))
    return names


# Manifest filename -> parser
MANIFEST_PARSERS: dict[str, Callable[[str], set[str]]] = {
    "package.json": parse_package_json,
    "composer.json": parse_composer_json,
    "pyproject.toml": parse_pyproject,
    "Pipfile": parse_pipfile,
    "Cargo.toml": parse_cargo_toml,
    "go.mod": parse_go_mod,
    "Gemfile": parse_gemfile,
    "pom.xml": parse_pom_xml,
    "build.gradle": parse_gradle,
    "build.gradle.kts": parse_gradle,
}


# Glob filename patterns -> parser, checked after exact names
MANIFEST_PATTERNS: tuple[tuple[str, Callable[[str], set[str]]], ...] = (
    ("requirements*.txt", parse_requirements),
)


def parser_for(name: str) -> Callable[[str], set[str]] | None:
    """Parser for a manifest filename, or None if it is not a manifest."""
    parser = MANIFEST_PARSERS.get(name)
    if parser is not None:
        return parser
    for pattern, candidate in MANIFEST_PATTERNS:
        if fnmatchcase(name, pattern):
            return candidate
    return None


def is_manifest(rel_path: str) -> bool:
    return parser_for(rel_path.rsplit("/", 1)[-1]) is not None


def read_manifest(path: Path, name: str) -> tuple[str, ...]:
    """Read a manifest and return its sorted dependency keys.

    Args:
        path: Absolute path to the manifest.
        name: Manifest filename used to pick the parser.

    Returns:
        Sorted tuple of keys; empty when unreadable or malformed.
    """
    parser = parser_for(name)
    if parser is None:
        return ()
    try:
        if path.stat().st_size > MAX_MANIFEST_BYTES:
            logger.debug("  Skipping oversized manifest %s", path)
            return ()
        content = path.read_text(encoding="utf-8", errors="replace")
        keys = parser(content)
    except (OSError, ValueError, AttributeError, TypeError) as e:
        # tomllib.TOMLDecodeError and json.JSONDecodeError are ValueErrors
        logger.debug("  Could not parse manifest %s: %s", path, e)
        return ()
    return tuple(sorted(keys))
