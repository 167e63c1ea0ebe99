"""Normalization pipeline: raw RouterOS records → typed time-series points."""
from .classifier import FieldClassifier
from .duration import parse_duration
from .field_tables import FieldTables, load_field_tables, sanitize_key
from .point_builder import FieldTypeLedger, PointBuilder

__all__ = [
    "FieldClassifier",
    "FieldTables",
    "FieldTypeLedger",
    "PointBuilder",
    "load_field_tables",
    "parse_duration",
    "sanitize_key",
]
