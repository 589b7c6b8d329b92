"""Error taxonomy shared by the analysis stages.

Fatal errors carry the offending path and the stage that raised them so a
report layer can render a precise diagnostic.
"""

from pathlib import Path


class AnalysisError(Exception):
    """Base class for fatal analysis errors."""

    def __init__(self, message: str, path: str | Path | None = None, stage: str = "analysis"):
        super().__init__(message)
        self.path = str(path) if path is not None else None
        self.stage = stage

    def to_dict(self) -> dict[str, str | None]:
        """Machine-readable form for report layers."""
        return {
            "error": type(self).__name__,
            "message": str(self),
            "path": self.path,
            "stage": self.stage,
        }


class RepositoryIOError(AnalysisError, OSError):
    """Raised when the repository root is missing, not a directory or unreadable."""

    def __init__(self, message: str, path: str | Path | None = None, stage: str = "fingerprint"):
        super().__init__(message, path=path, stage=stage)


class CatalogIntegrityError(AnalysisError):
    """Raised when a rule catalog is malformed or internally inconsistent."""

    def __init__(self, message: str, path: str | Path | None = None, stage: str = "catalog"):
        super().__init__(message, path=path, stage=stage)


class ConfigurationError(AnalysisError, ValueError):
    """Raised when analysis configuration is invalid."""

    def __init__(self, message: str, path: str | Path | None = None, stage: str = "config"):
        super().__init__(message, path=path, stage=stage)


class PartialReadWarning(UserWarning):
    """A subdirectory could not be read; the walk continued without it."""
