"""通知服务 - 把提醒和生命周期事件推送给用户"""
from typing import Optional

from loguru import logger

from ..channels.base import Channel
from ..errors import DeliveryError, PermissionDenied
from ..host import Notifier

logger = logger.bind(module="conftrack.notification")


class ChannelNotifier:
    """基于渠道的 Notifier 实现

    “权限”即：渠道已连接且配置了目标会话；请求权限会尝试连接渠道。
    """

    def __init__(self, channel: Channel, chat_id: Optional[str] = None, app_name: str = "ConfTrack"):
        self.channel = channel
        self.chat_id = chat_id or ""
        self.app_name = app_name

    def _has_target(self) -> bool:
        return bool(self.chat_id) or not self.channel.requires_target

    async def has_permission(self) -> bool:
        return self.channel.is_connected and self._has_target()

    async def request_permission(self) -> bool:
        if not self._has_target():
            return False
        if not self.channel.is_connected:
            await self.channel.connect()
        return self.channel.is_connected

    async def notify(self, title: str, message: str) -> None:
        content = f"[{self.app_name}] {title}\n{message}"
        if not await self.channel.send(self.chat_id, content):
            raise DeliveryError(f"Channel {self.channel.channel_type.value} did not deliver: {title}")

    async def close(self) -> None:
        """断开底层渠道"""
        if self.channel.is_connected:
            await self.channel.disconnect()


class NotificationDispatcher:
    """通知分发器

    ``show`` 即发即忘，从不抛异常：每次调用都会检查（必要时请求）权限，
    没有权限则静默跳过。
    """

    def __init__(self, notifier: Notifier):
        self.notifier = notifier

    async def _ensure_permission(self) -> None:
        if await self.notifier.has_permission():
            return
        if not await self.notifier.request_permission():
            raise PermissionDenied("notification permission not granted")

    async def show(self, title: str, message: str) -> bool:
        """显示一条通知

        Args:
            title: 通知标题
            message: 通知内容

        Returns:
            是否已投递
        """
        try:
            await self._ensure_permission()
            await self.notifier.notify(title, message)
            return True
        except PermissionDenied:
            logger.debug(f"Notification skipped, no permission: {title}")
            return False
        except Exception as e:
            logger.error(f"Show notification failed: {e}")
            return False
