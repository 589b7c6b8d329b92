"""Tests for the fingerprint builder."""

from pathlib import Path

import pytest

from repostruct.analyzers import fingerprint as fingerprint_module
from repostruct.analyzers.fingerprint import build_fingerprint
from repostruct.config import AnalysisConfig
from repostruct.errors import PartialReadWarning, RepositoryIOError


class TestRecordedPaths:
    """Tests for what the walk records."""

    def test_records_root_files_and_directories(self, make_repo):
        """Root files and subdirectories appear with POSIX paths."""
        root = make_repo({"README.md": "# hi", "src/app.py": "", "src/pkg/mod.py": ""})

        fp = build_fingerprint(root)

        assert "README.md" in fp.files
        assert "src/app.py" in fp.files
        assert "src/pkg/mod.py" in fp.files
        assert "src/" in fp.directories
        assert "src/pkg/" in fp.directories
        assert fp.root == str(root.resolve())

    def test_depth_limit_bounds_recorded_entries(self, make_repo):
        """Entries deeper than the depth limit are counted but not recorded."""
        root = make_repo({"a/b/c/d/e.txt": "deep", "a/top.txt": "x"})

        fp = build_fingerprint(root, AnalysisConfig(depth_limit=3))

        assert "a/top.txt" in fp.files
        assert "a/b/c/d/e.txt" not in fp.files
        assert "a/b/c/" in fp.directories
        assert "a/b/c/d/" not in fp.directories
        assert fp.total_files == 2

    def test_max_depth_observed_beyond_depth_limit(self, make_repo):
        """Nesting below the recorded depth still sets max_depth."""
        root = make_repo(dirs=("a/b/c/d/e",))

        fp = build_fingerprint(root, AnalysisConfig(depth_limit=2, nesting_threshold=4))

        assert fp.max_depth == 5
        assert fp.deepest_path == "a/b/c/d/e/"
        assert "a/b/c/" not in fp.directories

    def test_tree_is_breadth_first(self, make_repo):
        """Tree entries never go back to a shallower depth."""
        root = make_repo({"z.txt": "", "a/b/c.txt": "", "a/d.txt": ""})

        fp = build_fingerprint(root)

        depths = [entry.depth for entry in fp.tree]
        assert depths == sorted(depths)

    def test_records_file_sizes(self, make_repo):
        """File sizes come from the directory listing."""
        root = make_repo({"data.bin": b"\x00" * 2048})

        fp = build_fingerprint(root)

        assert fp.file_sizes["data.bin"] == 2048

    def test_reads_root_gitignore(self, make_repo):
        """Root .gitignore patterns are parsed into the fingerprint."""
        root = make_repo({".gitignore": "# comment\n*.log\n\n/build\n!keep.log\n"})

        fp = build_fingerprint(root)

        assert fp.ignore_patterns == ("*.log", "/build")


class TestExclusions:
    """Tests for traversal exclusions."""

    def test_skips_version_control_internals(self, make_repo):
        """.git is never traversed or recorded."""
        root = make_repo({".git/config": "[core]", ".git/objects/ab/cdef": "", "main.go": ""})

        fp = build_fingerprint(root)

        assert not any(p.startswith(".git/") for p in fp.all_paths())
        assert fp.total_files == 1

    def test_skips_dependency_trees(self, make_repo):
        """node_modules is skipped by default."""
        root = make_repo({"node_modules/left-pad/index.js": "", "index.js": ""})

        fp = build_fingerprint(root)

        assert "node_modules/" not in fp.directories
        assert fp.files == ("index.js",)

    def test_user_exclusion_globs(self, make_repo):
        """User globs match names and relative paths."""
        root = make_repo({
            "generated/out.txt": "",
            "docs/api/ref.md": "",
            "docs/guide.md": "",
            "keep.txt": "",
        })

        fp = build_fingerprint(root, AnalysisConfig(exclude=("generated", "docs/api")))

        assert "generated/" not in fp.directories
        assert "docs/api/" not in fp.directories
        assert "docs/guide.md" in fp.files
        assert "keep.txt" in fp.files


class TestManifests:
    """Tests for shallow manifest extraction during the walk."""

    def test_extracts_dependency_keys(self, make_repo):
        """Dependency names are recorded per manifest path."""
        root = make_repo({
            "requirements.txt": "Flask==3.0\nrequests>=2\n",
            "web/package.json": '{"dependencies": {"react": "^18"}}',
        })

        fp = build_fingerprint(root)

        assert fp.manifests["requirements.txt"] == ("flask", "requests")
        assert fp.manifests["web/package.json"] == ("react",)

    def test_malformed_manifest_yields_no_keys(self, make_repo):
        """A broken manifest never fails the walk."""
        root = make_repo({"package.json": "{not json"})

        fp = build_fingerprint(root)

        assert fp.manifests["package.json"] == ()


class TestDegradation:
    """Tests for sampling, timeouts and unreadable directories."""

    def test_sampling_cap_sets_flag(self, make_repo):
        """Enumeration stops at the cap and marks the fingerprint sampled."""
        root = make_repo({f"file_{i:03d}.txt": "" for i in range(30)})

        fp = build_fingerprint(root, AnalysisConfig(sample_cap=10))

        assert fp.sampled is True
        assert fp.total_files == 10
        assert len(fp.files) == 10

    def test_under_cap_is_not_sampled(self, make_repo):
        """Small trees are fully enumerated."""
        root = make_repo({"a.txt": "", "b.txt": ""})

        fp = build_fingerprint(root, AnalysisConfig(sample_cap=10))

        assert fp.sampled is False
        assert fp.total_files == 2

    def test_time_budget_stops_walk(self, make_repo):
        """An exhausted budget yields a partial fingerprint, not an error."""
        root = make_repo({"top.txt": "", "a/b/c.txt": ""})

        fp = build_fingerprint(root, AnalysisConfig(timeout_seconds=1e-9))

        assert fp.timed_out is True
        assert fp.sampled is True
        assert "top.txt" in fp.files

    def test_unreadable_subdirectory_is_recorded(self, make_repo, monkeypatch):
        """An unreadable subdirectory sets partial_read and the walk continues."""
        root = make_repo({"secret/key.pem": "", "public/index.html": ""})
        original = fingerprint_module._list_dir

        def _flaky_list_dir(path: Path):
            if path.name == "secret":
                raise PermissionError("Permission denied")
            return original(path)

        monkeypatch.setattr(fingerprint_module, "_list_dir", _flaky_list_dir)

        with pytest.warns(PartialReadWarning, match="secret/"):
            fp = build_fingerprint(root)

        assert fp.partial_read is True
        assert fp.unreadable_paths == ("secret/",)
        assert "public/index.html" in fp.files
        assert "secret/" in fp.directories


class TestRootErrors:
    """Tests for fatal root errors."""

    def test_missing_root_raises(self, temp_dir):
        """A nonexistent root aborts with RepositoryIOError."""
        with pytest.raises(RepositoryIOError) as exc_info:
            build_fingerprint(temp_dir / "does-not-exist")

        assert exc_info.value.stage == "fingerprint"
        assert "does-not-exist" in exc_info.value.path

    def test_root_error_is_an_os_error(self, temp_dir):
        """Callers catching OSError also see root failures."""
        with pytest.raises(OSError):
            build_fingerprint(temp_dir / "missing")

    def test_file_as_root_raises(self, make_repo):
        """A file is not a repository root."""
        root = make_repo({"file.txt": "x"})

        with pytest.raises(RepositoryIOError, match="not a directory"):
            build_fingerprint(root / "file.txt")

    def test_unreadable_root_raises(self, make_repo, monkeypatch):
        """Failing to list the root itself is fatal."""
        root = make_repo({"a.txt": ""})

        def _denied(path: Path):
            raise PermissionError("Permission denied")

        monkeypatch.setattr(fingerprint_module, "_list_dir", _denied)

        with pytest.raises(RepositoryIOError, match="Cannot read repository root"):
            build_fingerprint(root)
