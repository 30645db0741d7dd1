"""
ASVP Relay Client Modules

HTTP clients for the registry service and the notification channel.
"""

from .registry_client import RegistryClient, QueryResult, default_headers
from .telegram_notifier import Notifier, NullNotifier, TelegramNotifier, build_notifier

__all__ = [
    "RegistryClient",
    "QueryResult",
    "default_headers",
    "Notifier",
    "NullNotifier",
    "TelegramNotifier",
    "build_notifier",
]
