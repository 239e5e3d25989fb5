"""控制台渠道实现"""
import sys
from typing import Optional, TextIO

from .base import Channel, ChannelType


class ConsoleChannel(Channel):
    """控制台渠道

    把通知写到终端（默认 stdout），无需任何凭据
    """

    def __init__(self, stream: Optional[TextIO] = None):
        super().__init__()
        self.stream = stream

    @property
    def channel_type(self) -> ChannelType:
        return ChannelType.CONSOLE

    @property
    def requires_target(self) -> bool:
        return False

    async def connect(self) -> bool:
        self._connected = True
        return True

    async def disconnect(self):
        self._connected = False

    async def send(self, channel_id: str, content: str, **kwargs) -> bool:  # noqa: ARG002
        if not self._connected:
            return False
        stream = self.stream or sys.stdout
        stream.write(f"{content}\n")
        stream.flush()
        return True
