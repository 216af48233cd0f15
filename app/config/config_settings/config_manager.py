import os
import re
import yaml
from pathlib import Path
from functools import lru_cache
from dotenv import load_dotenv
from app.config.config_settings.config_schema import AppConfig
from app.core.logger import logger


BASE_DIR = Path(__file__).resolve().parents[3]
CONFIG_DIR = Path(__file__).resolve().parents[1]
DEFAULT_ENV = "config"

# ${VAR} 或 ${VAR:-default}
_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def load_yaml(path: Path) -> dict:
    if not path.exists():
        raise FileNotFoundError(f"配置文件未找到: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def interpolate_env_vars(obj):
    """
    替换 YAML 中的 ${VAR} / ${VAR:-default} 为 os.environ 中的值
    并做类型转换（true/false）。未设置且没有默认值的变量保持原样。
    """
    def substitute(match: re.Match) -> str:
        name, default = match.group(1), match.group(2)
        value = os.environ.get(name)
        if value is not None:
            return value
        if default is not None:
            return default
        return match.group(0)

    def convert(value: str):
        v = value.lower()
        if v == "true": return True
        if v == "false": return False
        if v in ("", "null", "none"): return None
        return value

    if isinstance(obj, dict):
        return {k: interpolate_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [interpolate_env_vars(i) for i in obj]
    elif isinstance(obj, str):
        raw = _ENV_PATTERN.sub(substitute, obj)
        return convert(raw)
    else:
        return obj


def get_env() -> str:
    return os.getenv("ENV", DEFAULT_ENV)


@lru_cache()
def get_app_config() -> AppConfig:
    env = get_env()
    logger.info(f"🌍 当前环境: {env}")

    # 1. 通用 .env 文件
    base_env_path = BASE_DIR / ".env"
    if base_env_path.exists():
        load_dotenv(dotenv_path=base_env_path)
        logger.info(f"✔️ 已加载通用 .env 文件: {base_env_path}")

    # 2. 特定环境的 .env 文件 (例如 .env.prod)，覆盖通用设置
    env_specific_path = BASE_DIR / f".env.{env}"
    if env_specific_path.exists():
        load_dotenv(dotenv_path=env_specific_path, override=True)
        logger.info(f"✔️ 已加载特定环境 .env 文件: {env_specific_path}")

    config_path = CONFIG_DIR / f"{env}.yaml"
    logger.info(f"🔧 加载配置文件: {config_path}")

    data = load_yaml(config_path)
    data = interpolate_env_vars(data)

    config = AppConfig(**data)
    logger.debug(f"🔧 服务配置: {config.server}")
    return config
