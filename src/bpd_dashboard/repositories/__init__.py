"""Remote store interfaces."""

from .repository import (
    TABLES,
    ChangeCallback,
    ChangeEvent,
    ChangeSubscription,
    RemoteStore,
    Row,
    StoreError,
)

__all__ = [
    "TABLES",
    "ChangeCallback",
    "ChangeEvent",
    "ChangeSubscription",
    "RemoteStore",
    "Row",
    "StoreError",
]
