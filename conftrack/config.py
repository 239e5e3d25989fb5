"""配置管理 - ConfTrack 服务配置"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List

from dotenv import load_dotenv
load_dotenv(override=True)


def _default_data_dir() -> Path:
    return Path.home() / ".conftrack"


@dataclass
class Settings:
    """服务配置"""

    # 服务配置
    host: str = "0.0.0.0"
    port: int = 8790
    debug: bool = False
    log_level: str = "INFO"
    app_name: str = "ConfTrack"

    # 数据目录（SQLite key-value 存储）
    data_dir: Path = field(default_factory=_default_data_dir)
    db_path: Path = field(default_factory=lambda: _default_data_dir() / "conftrack.db")

    # 会议数据缓存
    cache_ttl_seconds: int = 3600
    fetch_timeout_seconds: int = 30

    # 远程会议数据源（GitHub 仓库）
    repo_owner: str = "chateda-ichip"
    repo_name: str = "ConfTrack"
    repo_branch: str = "main"
    repo_path: str = "conference"
    categories: List[str] = field(default_factory=lambda: ["arch", "design", "device", "eda"])
    github_token: Optional[str] = None

    # 通知渠道：console / telegram
    notify_channel: str = "console"
    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """从环境变量加载配置"""
        debug = os.getenv("DEBUG", "").lower() in ("1", "true")
        data_dir = Path(os.getenv("CONFTRACK_DATA_DIR", str(_default_data_dir()))).expanduser()
        categories = os.getenv("CONFTRACK_CATEGORIES", "arch,design,device,eda")

        return cls(
            # 服务
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8790")),
            debug=debug,
            log_level=os.getenv("LOG_LEVEL", "DEBUG" if debug else "INFO").upper(),
            app_name=os.getenv("CONFTRACK_APP_NAME", "ConfTrack"),

            # 路径
            data_dir=data_dir,
            db_path=Path(os.getenv(
                "CONFTRACK_DB_PATH", str(data_dir / "conftrack.db")
            )).expanduser(),

            # 缓存
            cache_ttl_seconds=int(os.getenv("CONFTRACK_CACHE_TTL", "3600")),
            fetch_timeout_seconds=int(os.getenv("CONFTRACK_FETCH_TIMEOUT", "30")),

            # 数据源
            repo_owner=os.getenv("CONFTRACK_REPO_OWNER", "chateda-ichip"),
            repo_name=os.getenv("CONFTRACK_REPO_NAME", "ConfTrack"),
            repo_branch=os.getenv("CONFTRACK_REPO_BRANCH", "main"),
            repo_path=os.getenv("CONFTRACK_REPO_PATH", "conference"),
            categories=[
                c.strip() for c in categories.split(",") if c.strip()
            ],
            github_token=os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN"),

            # 通知
            notify_channel=os.getenv("CONFTRACK_NOTIFY_CHANNEL", "console").lower(),
            telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN"),
            telegram_chat_id=os.getenv("TELEGRAM_CHAT_ID"),
        )


# 全局配置实例
settings = Settings.from_env()
