"""Store adapters."""

from .change_feed import PollingChangeFeed
from .rest_api import RestStore, create_store

__all__ = ["PollingChangeFeed", "RestStore", "create_store"]
