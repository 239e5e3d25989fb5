"""通知渠道抽象

渠道只负责把一段已经排好版的文本投递出去，不接收消息。
"""
from abc import ABC, abstractmethod
from enum import Enum


class ChannelType(Enum):
    """渠道类型"""
    CONSOLE = "console"
    TELEGRAM = "telegram"


class Channel(ABC):
    """单向通知渠道

    子类实现连接管理和 ``send``；``requires_target`` 表示投递时是否需要会话ID。
    """

    def __init__(self):
        self._connected = False

    @property
    @abstractmethod
    def channel_type(self) -> ChannelType:
        ...

    @property
    def requires_target(self) -> bool:
        """投递是否需要目标会话ID"""
        return True

    @property
    def is_connected(self) -> bool:
        return self._connected

    @abstractmethod
    async def connect(self) -> bool:
        """连接渠道，返回是否可用"""

    @abstractmethod
    async def disconnect(self):
        """释放渠道资源"""

    @abstractmethod
    async def send(self, channel_id: str, content: str, **kwargs) -> bool:
        """投递一条通知

        Args:
            channel_id: 目标会话ID（不需要目标的渠道忽略）
            content: 已排版的通知文本
            **kwargs: 渠道特有参数，如 parse_mode

        Returns:
            是否投递成功
        """
