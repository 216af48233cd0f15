# app/core/logger.py
from loguru import logger
import sys
import os
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.config.config_settings.config_schema import LoggingConfig

# 获取运行环境
ENV = os.getenv("ENV_MODE", "development").lower()

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# 清除默认 handler
logger.remove()

# 控制台输出 (配置加载前即可使用)
logger.add(
    sys.stderr,
    level="DEBUG" if ENV == "development" else "INFO",
    colorize=True,
    backtrace=True,
    diagnose=False,
    format=CONSOLE_FORMAT,
)


def setup_logging(config: "LoggingConfig") -> None:
    """
    按配置重建日志输出。
    控制台始终输出；enable_file 时额外写入滚动文本日志和 WARNING 以上的 JSON 日志。
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if ENV == "development" else config.level.upper(),
        colorize=True,
        enqueue=True,
        backtrace=True,
        diagnose=False,
        format=CONSOLE_FORMAT,
    )

    if not config.enable_file:
        return

    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    # 普通文本日志输出到文件
    logger.add(
        log_dir / "app.log",
        level="DEBUG",
        rotation=config.rotation,
        retention=config.retention,
        encoding="utf-8",
        enqueue=True,
        backtrace=True,
        diagnose=False,
    )

    # JSON 结构化日志输出
    logger.add(
        log_dir / "app.json",
        level="WARNING",  # 只记录警告及以上
        rotation=config.rotation,
        retention=config.retention,
        serialize=True,
        encoding="utf-8",
        enqueue=True,
    )
    logger.debug(f"File logging enabled in {log_dir.resolve()}")


def get_logger(name: str = None):
    """仿 logging.getLogger() 实现的 loguru logger 工厂方法"""
    if name:
        return logger.bind(module=name)
    return logger
