"""Services module for the BPD dashboard - Business logic layer."""

from .config_service import ConfigService, get_config_service
from .pubsub import Subscription, SubscriptionRegistry
from .report_service import FALLBACK_REPORT, ReportService
from .sync_service import ConnectionState, StateSyncService

__all__ = [
    "ConfigService",
    "get_config_service",
    "Subscription",
    "SubscriptionRegistry",
    "ReportService",
    "FALLBACK_REPORT",
    "ConnectionState",
    "StateSyncService",
]
