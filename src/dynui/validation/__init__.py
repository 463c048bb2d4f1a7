"""Raw property value validation.

`PropertyValidationEngine` runs every applicable `PropertyValidator`
before a value is converted and assigned. Errors block the assignment,
warnings are only reported.
"""

from .engine import PropertyValidationEngine
from .result import ValidationResult
from .validators import (
    DataContextValidator,
    EnumValidator,
    FilePathValidator,
    NumericRangeValidator,
    PropertyValidator,
    RangeConsistencyValidator,
    SecurityValidator,
    StringLengthValidator,
    default_validators,
    source_directory,
)

__all__ = (
    'DataContextValidator',
    'EnumValidator',
    'FilePathValidator',
    'NumericRangeValidator',
    'PropertyValidationEngine',
    'PropertyValidator',
    'RangeConsistencyValidator',
    'SecurityValidator',
    'StringLengthValidator',
    'ValidationResult',
    'default_validators',
    'source_directory',
)
