"""Custom exception hierarchy for arabic-ontology."""

from __future__ import annotations

from collections.abc import Sequence


class OntologyError(Exception):
    """Base exception for all arabic-ontology errors."""


class SourceError(OntologyError):
    """A problem with one delimited source file."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(message)


class SourceFileMissing(SourceError):
    """Source file does not exist."""

    def __init__(self, source: str) -> None:
        super().__init__(source, f"Source file not found: {source}")


class EmptyFile(SourceError):
    """Source file has no header row."""

    def __init__(self, source: str) -> None:
        super().__init__(source, f"CSV file is empty: {source}")


class MissingColumns(SourceError):
    """Header lacks one or more required columns."""

    def __init__(self, source: str, columns: Sequence[str]) -> None:
        self.columns = list(columns)
        super().__init__(
            source,
            f"CSV file {source!r} missing required columns: "
            f"{', '.join(self.columns)}",
        )


class MalformedRow(SourceError):
    """A single row that cannot be turned into an entity."""

    def __init__(self, source: str, line: int | None, reason: str) -> None:
        self.line = line
        where = f"{source}:{line}" if line is not None else source
        super().__init__(source, f"Malformed row at {where}: {reason}")


class ImportCancelled(OntologyError):
    """The import run was cancelled between stages."""


class ConfigError(OntologyError):
    """Invalid import manifest or configuration."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        super().__init__(message)


class EntityNotFoundError(OntologyError):
    """Entity doesn't exist in the database."""


class DatabaseError(OntologyError):
    """Schema version mismatch, connection failure."""
