"""Base Pydantic models for layout documents and builder settings.

This module defines the foundational model classes used by document
schemas, value types and reports. Immutable schema models guarantee that
parsed layout data and converted values cannot drift after validation.
"""

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Base immutable model for all declarative layout elements.

    Design principles enforced by this model:
        - Immutability: elements cannot be modified after creation.
          Converted values may therefore be cached and shared between
          nodes without side effects.
        - Strict schema validation: unknown or extra fields are rejected
          to avoid silent errors caused by typos in layout documents.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class MutableModel(BaseModel):
    """Base mutable model for intermediate and reporting structures.

    Node descriptors are extended while parsing (children appended,
    defaults merged, source files stamped) and build reports are filled
    while building, so these models keep strict field validation but
    allow in-place updates.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        extra='forbid',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for builder runtime settings.

    Design principles enforced by this model:
        - Immutability: resolved settings cannot be modified after creation.
          This guarantees consistent behavior during a build.
        - Tolerant schema handling: unknown or extra fields are ignored.
          This allows the surrounding environment to contain unrelated
          variables without breaking configuration resolution.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )
