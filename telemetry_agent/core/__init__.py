"""Core module - contains enums, exceptions, value types, and configuration."""
from .enums import FieldDisposition, FieldType, UnknownFieldPolicy
from .config import Settings, get_settings
from .types import CycleSummary, DeviceResult, Point

__all__ = [
    "FieldDisposition",
    "FieldType",
    "UnknownFieldPolicy",
    "Settings",
    "get_settings",
    "CycleSummary",
    "DeviceResult",
    "Point",
]
