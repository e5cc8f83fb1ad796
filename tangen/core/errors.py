"""Exceptions raised by the tangen pipeline.

Non-fatal problems are collected as warning strings on results; the
exceptions here abort generation for the affected source only.
"""

from typing import Sequence


class TangenError(Exception):
    """Base class for all tangen errors."""


class SchemaParseError(TangenError):
    """A schema, document or spec could not be turned into IR at all."""


class ScalarMappingError(TangenError):
    """A custom scalar override is not a plausible expression for the validator."""

    def __init__(self, message: str, scalar: str, suggestion: str | None = None):
        self.scalar = scalar
        self.suggestion = suggestion
        super().__init__(message)


class UnknownValidatorError(TangenError, ValueError):
    """Raised when an unsupported validator library is requested."""

    def __init__(self, library: str, supported: Sequence[str]):
        self.library = library
        self.supported = supported
        super().__init__(
            f"Unknown validator library: {library}. "
            f"Supported libraries: {', '.join(supported)}"
        )


class DuplicateSchemaError(TangenError):
    """Two named schemas in one module share a name."""


class ConfigError(TangenError):
    """Configuration file is missing or invalid."""


class SourceLoadError(TangenError):
    """A schema or spec file could not be read or fetched."""
