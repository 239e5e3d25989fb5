"""服务模块"""
from .notification import ChannelNotifier, NotificationDispatcher
from .subscriptions import Preferences, SubscriptionStore
from .tracker import (
    ConferenceNotFound,
    ConferenceTracker,
    SubscribeResult,
    UnsubscribeResult,
    build_tracker,
)

__all__ = [
    "ChannelNotifier",
    "ConferenceNotFound",
    "ConferenceTracker",
    "NotificationDispatcher",
    "Preferences",
    "SubscribeResult",
    "SubscriptionStore",
    "UnsubscribeResult",
    "build_tracker",
]
