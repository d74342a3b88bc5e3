"""
Client side of DentaStock.

``ApiClient`` talks to the REST API, ``OfflineQueue`` keeps the mutations
that could not reach it and ``LocalStore`` holds the cached state the UI
reads from.
"""

from .client import ApiClient, ApiError, OfflineError, SessionExpired
from .queue import OfflineQueue, QueueFull, SyncReport
from .store import LocalStore

__all__ = [
    'ApiClient',
    'ApiError',
    'OfflineError',
    'SessionExpired',
    'OfflineQueue',
    'QueueFull',
    'SyncReport',
    'LocalStore',
]
