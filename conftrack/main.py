"""ConfTrack 服务入口"""
import sys

from loguru import logger

from .config import settings


def configure_logging(level: str | None = None) -> None:
    """配置 loguru 日志输出"""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level or settings.log_level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[module]} | {message}",
    )
    logger.configure(extra={"module": "conftrack"})


def main() -> None:
    """启动 HTTP 服务（提醒调度随服务生命周期启动）"""
    import uvicorn

    configure_logging()
    logger.info(f"Starting ConfTrack on {settings.host}:{settings.port}")
    uvicorn.run(
        "conftrack.api:app",
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
