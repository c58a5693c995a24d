"""Exceptions raised by entity generation."""
from typing import Optional


class GenerationError(Exception):
    """Base class for generation failures."""


class SchemaError(GenerationError):
    """Raw schema could not be parsed or failed validation."""


class ClassificationError(GenerationError):
    """No strategy could classify a field. Internal invariant violation."""


class SerializationError(GenerationError):
    """A metadata builder could not render a value deterministically."""

    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(message)
        self.field_name = field_name


class EmissionError(GenerationError):
    """Writing a generated file failed."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path
