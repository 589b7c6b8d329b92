"""Analysis configuration.

Configuration via environment variables (read at call time, not import time):
    REPOSTRUCT_DEPTH_LIMIT: Deepest level recorded in the fingerprint (default 3)
    REPOSTRUCT_SAMPLE_CAP: Maximum files enumerated before sampling kicks in (default 1000)
    REPOSTRUCT_NESTING_THRESHOLD: Directory depth considered too deep (default 4)
    REPOSTRUCT_LARGE_FILE_BYTES: Size above which unignored files are flagged (default 5 MiB)
    REPOSTRUCT_WORKERS: Thread pool size for the directory walk
    REPOSTRUCT_TIMEOUT: Wall-clock budget for the walk in seconds
    REPOSTRUCT_EXCLUDE: Comma-separated exclusion globs
    REPOSTRUCT_CATALOG: Path to a rule catalog JSON file
"""

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from repostruct.errors import ConfigurationError

DEFAULT_DEPTH_LIMIT = 3
DEFAULT_SAMPLE_CAP = 1000
DEFAULT_NESTING_THRESHOLD = 4
DEFAULT_LARGE_FILE_BYTES = 5 * 1024 * 1024

_ENV_FIELDS: dict[str, str] = {
    "REPOSTRUCT_DEPTH_LIMIT": "depth_limit",
    "REPOSTRUCT_SAMPLE_CAP": "sample_cap",
    "REPOSTRUCT_NESTING_THRESHOLD": "nesting_threshold",
    "REPOSTRUCT_LARGE_FILE_BYTES": "large_file_bytes",
    "REPOSTRUCT_WORKERS": "workers",
    "REPOSTRUCT_TIMEOUT": "timeout_seconds",
    "REPOSTRUCT_CATALOG": "catalog_path",
}


class AnalysisConfig(BaseModel):
    """Validated knobs for a single analysis run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    depth_limit: int = Field(default=DEFAULT_DEPTH_LIMIT, ge=1, description="Deepest recorded level")
    sample_cap: int = Field(default=DEFAULT_SAMPLE_CAP, ge=1, description="File-count sampling cap")
    exclude: tuple[str, ...] = Field(default=(), description="Extra exclusion globs")
    nesting_threshold: int = Field(
        default=DEFAULT_NESTING_THRESHOLD, ge=1, description="Directory depth considered too deep"
    )
    large_file_bytes: int = Field(
        default=DEFAULT_LARGE_FILE_BYTES, ge=1, description="Large-file threshold in bytes"
    )
    workers: int | None = Field(default=None, ge=1, description="Walk thread pool size")
    timeout_seconds: float | None = Field(default=None, gt=0, description="Walk time budget")
    catalog_path: str | None = Field(default=None, description="Rule catalog override")

    @property
    def probe_depth(self) -> int:
        """Depth the walker descends to so over-deep nesting stays observable."""
        return max(self.depth_limit, self.nesting_threshold + 1)

    @property
    def effective_workers(self) -> int:
        return self.workers or min(8, os.cpu_count() or 1)

    @classmethod
    def create(cls, **values: Any) -> "AnalysisConfig":
        """Build a config, converting validation failures to ConfigurationError."""
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_env(cls, **overrides: Any) -> "AnalysisConfig":
        """Build a config from REPOSTRUCT_* environment variables.

        Explicit overrides win over the environment; overrides set to None are
        treated as absent.

        Raises:
            ConfigurationError: If any value fails validation.
        """
        values: dict[str, Any] = {}
        for env_name, field_name in _ENV_FIELDS.items():
            raw = os.getenv(env_name)
            if raw is not None and raw.strip():
                values[field_name] = raw.strip()

        raw_exclude = os.getenv("REPOSTRUCT_EXCLUDE", "")
        if raw_exclude.strip():
            values["exclude"] = tuple(p.strip() for p in raw_exclude.split(",") if p.strip())

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.create(**values)
