"""Telegram 渠道实现（只发不收）"""
from typing import List, Optional, Union

from loguru import logger

from .base import Channel, ChannelType
from ..config import settings

logger = logger.bind(module="conftrack.channels.telegram")

# Telegram 单条消息上限 4096 字符，留出余量
MAX_MESSAGE_LENGTH = 4000

# 延迟导入 Telegram SDK
Bot = None


def _ensure_telegram_sdk():
    """确保 Telegram SDK 已导入"""
    global Bot
    if Bot is None:
        try:
            from telegram import Bot as _Bot
            Bot = _Bot
        except ImportError:
            raise ImportError(
                "Telegram SDK 未安装，请运行: pip install 'conftrack[telegram]'"
            )


def split_message(text: str, max_len: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """按行切分长通知，单行超长时再硬切"""
    if len(text) <= max_len:
        return [text]

    chunks: List[str] = []
    current = ""
    for line in text.splitlines(keepends=True):
        while len(line) > max_len:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:max_len])
            line = line[max_len:]
        if len(current) + len(line) > max_len:
            chunks.append(current)
            current = ""
        current += line
    if current:
        chunks.append(current)
    return chunks


def _chat_target(channel_id: Optional[str]) -> Union[int, str, None]:
    """数字ID转为 int，@username 形式原样传给 Bot API"""
    target = (channel_id or "").strip()
    if not target:
        return None
    if target.lstrip("-").isdigit():
        return int(target)
    return target


class TelegramChannel(Channel):
    """Telegram 渠道

    通过 python-telegram-bot 的 ``Bot`` 把提醒推送到指定会话
    """

    def __init__(self, bot_token: Optional[str] = None, parse_mode: Optional[str] = None):
        super().__init__()
        self.bot_token = bot_token or settings.telegram_bot_token
        self.parse_mode = parse_mode
        self._bot = None

    @property
    def channel_type(self) -> ChannelType:
        return ChannelType.TELEGRAM

    async def connect(self) -> bool:
        if self._connected:
            return True
        if not self.bot_token:
            logger.warning("[Telegram] No bot token configured")
            return False

        try:
            _ensure_telegram_sdk()
            bot = Bot(token=self.bot_token)
            await bot.initialize()
        except ImportError as e:
            logger.error(f"[Telegram] {e}")
            return False
        except Exception as e:
            logger.error(f"[Telegram] Bot initialization failed: {e}")
            return False

        self._bot = bot
        self._connected = True
        logger.info(f"[Telegram] Ready as @{getattr(bot, 'username', None) or 'bot'}")
        return True

    async def disconnect(self):
        bot, self._bot = self._bot, None
        self._connected = False
        if bot is None:
            return
        try:
            await bot.shutdown()
        except Exception as e:
            logger.warning(f"[Telegram] Shutdown error: {e}")

    async def send(self, channel_id: str, content: str, **kwargs) -> bool:
        if self._bot is None:
            logger.warning("[Telegram] Send skipped, bot not connected")
            return False
        chat_id = _chat_target(channel_id)
        if chat_id is None:
            logger.error(f"[Telegram] Invalid chat id: {channel_id!r}")
            return False

        parse_mode = kwargs.get("parse_mode", self.parse_mode)
        try:
            for chunk in split_message(content):
                await self._bot.send_message(chat_id=chat_id, text=chunk, parse_mode=parse_mode)
        except Exception as e:
            logger.error(f"[Telegram] Send to {chat_id} failed: {e}")
            return False
        return True
