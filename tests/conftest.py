"""Pytest configuration and shared fixtures."""

import tempfile
from collections.abc import Callable
from pathlib import Path

import pytest

from repostruct.analyzers.catalog import load_catalog, reset_catalog
from repostruct.models.structure import Fingerprint, RuleCatalog, TreeEntry

_ENV_VARS = (
    "REPOSTRUCT_DEPTH_LIMIT",
    "REPOSTRUCT_SAMPLE_CAP",
    "REPOSTRUCT_NESTING_THRESHOLD",
    "REPOSTRUCT_LARGE_FILE_BYTES",
    "REPOSTRUCT_WORKERS",
    "REPOSTRUCT_TIMEOUT",
    "REPOSTRUCT_EXCLUDE",
    "REPOSTRUCT_CATALOG",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch):
    """Isolate tests from REPOSTRUCT_* settings and the cached catalog."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_catalog()
    yield
    reset_catalog()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_repo(temp_dir: Path) -> Callable[..., Path]:
    """Build a repository on disk from a {relative path: content} mapping.

    Bytes content is written verbatim; `dirs` creates empty directories.
    """

    def _make(files: dict[str, str | bytes] | None = None, dirs: tuple[str, ...] = ()) -> Path:
        for rel, content in (files or {}).items():
            path = temp_dir / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content)
        for rel in dirs:
            (temp_dir / rel).mkdir(parents=True, exist_ok=True)
        return temp_dir

    return _make


@pytest.fixture
def make_fingerprint() -> Callable[..., Fingerprint]:
    """Build an in-memory Fingerprint without touching the filesystem.

    Parent directories of every file are added automatically, and max_depth
    defaults to the deepest directory.
    """

    def _make(
        files: tuple[str, ...] = (),
        directories: tuple[str, ...] = (),
        **fields,
    ) -> Fingerprint:
        dirs = set(directories)
        for path in (*files, *directories):
            parts = path.rstrip("/").split("/")
            for i in range(1, len(parts)):
                dirs.add("/".join(parts[:i]) + "/")

        tree = [TreeEntry(depth=d.count("/"), path=d, is_dir=True) for d in sorted(dirs)]
        tree += [TreeEntry(depth=f.count("/") + 1, path=f) for f in sorted(files)]

        deepest = max(dirs, key=lambda d: d.count("/"), default=None)
        defaults = {
            "root": "/repo",
            "files": tuple(sorted(files)),
            "directories": tuple(sorted(dirs)),
            "tree": tuple(tree),
            "total_files": len(files),
            "max_depth": deepest.count("/") if deepest else 0,
            "deepest_path": deepest,
        }
        defaults.update(fields)
        return Fingerprint(**defaults)

    return _make


@pytest.fixture
def catalog() -> RuleCatalog:
    """The bundled rule catalog."""
    return load_catalog()


@pytest.fixture
def minimal_catalog_data() -> dict:
    """A small, valid catalog as decoded JSON."""
    return {
        "version": "test-1",
        "bands": {
            "framework": [
                {
                    "id": "web.dependency",
                    "label": "web",
                    "band": "framework",
                    "weight": 0.6,
                    "template": "web",
                    "signal": {"kind": "dependency", "key": "webkit"},
                },
            ],
            "language": [
                {
                    "id": "lang.marker",
                    "label": "lang",
                    "band": "language",
                    "weight": 0.5,
                    "template": "lang",
                    "signal": {"kind": "marker_file", "path": "lang.toml"},
                },
            ],
            "purpose": [],
        },
        "templates": {
            "lang": {
                "entries": [
                    {"path": "tests/", "concern": "tests"},
                    {"path": "README.md", "concern": "docs"},
                ],
                "ignore": ["build/"],
            },
            "web": {
                "extends": "lang",
                "entries": [{"path": "README.md", "concern": "docs", "optional": True}],
                "ignore": ["cache/"],
            },
        },
        "anti_patterns": ["missing_tests", "missing_license"],
    }
