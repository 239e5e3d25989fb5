"""渠道模块"""
from .base import Channel, ChannelType
from .console import ConsoleChannel
from .telegram import TelegramChannel

__all__ = [
    "Channel",
    "ChannelType",
    "ConsoleChannel",
    "TelegramChannel",
]
