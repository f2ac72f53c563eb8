"""Schemas for the live class aggregate and its persistent form."""

from .live_class import LiveClass, LiveClassSettings, ProviderConfig, RosterEntry
from .live_class_record import LiveClassRecord
from .live_class_state import LiveClassStatus, Provider, Visibility

__all__ = [
    "LiveClass",
    "LiveClassRecord",
    "LiveClassSettings",
    "LiveClassStatus",
    "Provider",
    "ProviderConfig",
    "RosterEntry",
    "Visibility",
]
