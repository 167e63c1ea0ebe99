"""
Enumeration definitions for the application.

All enums are defined here to maintain consistency and type safety.
"""
from enum import Enum


class FieldDisposition(str, Enum):
    """
    How one (measurement kind, field key) pair is written.

    - IGNORE: never written
    - FORCE_STRING: always written as trimmed text
    - FORCE_NUMERIC: always written as float, dropped when not numeric
    - INFER: type guessed from the lexical shape of the value
    """

    IGNORE = "ignore"
    FORCE_STRING = "string"
    FORCE_NUMERIC = "numeric"
    INFER = "infer"


class UnknownFieldPolicy(str, Enum):
    """Policy for fields that reach type inference."""

    WRITE = "write"
    DROP = "drop"


class FieldType(str, Enum):
    """Value types a point field can carry."""

    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"

    @classmethod
    def of(cls, value: object) -> "FieldType":
        """Map a Python field value to its FieldType."""
        if isinstance(value, bool):
            raise TypeError("bool is not a field type")
        if isinstance(value, int):
            return cls.INTEGER
        if isinstance(value, float):
            return cls.FLOAT
        if isinstance(value, str):
            return cls.STRING
        raise TypeError(f"unsupported field value type: {type(value).__name__}")
