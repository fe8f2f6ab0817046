import os
import re
from functools import lru_cache
from pathlib import Path
from string import Template

import yaml
from dotenv import load_dotenv
from loguru import logger

from filevault.config.config_settings.config_schema import AppConfig


BASE_DIR = Path(__file__).resolve().parents[3]
CONFIG_DIR = Path(__file__).resolve().parents[1]
DEFAULT_ENV = "config"

_UNRESOLVED = re.compile(r"^\$\{\w+\}$")


def load_yaml(path: Path) -> dict:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def interpolate_env_vars(obj):
    """
    Replace ${VAR} placeholders with values from os.environ.
    true/false become booleans; a placeholder with no matching variable becomes None.
    """
    def convert(value: str):
        if _UNRESOLVED.match(value):
            return None
        v = value.lower()
        if v == "true":
            return True
        if v == "false":
            return False
        return value

    if isinstance(obj, dict):
        return {k: interpolate_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [interpolate_env_vars(i) for i in obj]
    elif isinstance(obj, str):
        raw = Template(obj).safe_substitute(os.environ)
        return convert(raw)
    else:
        return obj


def _drop_none(obj):
    # unresolved optional values fall back to the schema defaults
    if isinstance(obj, dict):
        return {k: _drop_none(v) for k, v in obj.items() if v is not None}
    return obj


def get_env() -> str:
    return os.getenv("ENV", DEFAULT_ENV)


@lru_cache()
def get_app_config() -> AppConfig:
    env = get_env()
    logger.info(f"Active environment: {env}")

    # shared .env first, then .env.{env} overriding it
    base_env_path = BASE_DIR / ".env"
    if base_env_path.exists():
        load_dotenv(dotenv_path=base_env_path)
        logger.info(f"Loaded shared .env file: {base_env_path}")

    env_specific_path = BASE_DIR / f".env.{env}"
    if env_specific_path.exists():
        load_dotenv(dotenv_path=env_specific_path, override=True)
        logger.info(f"Loaded environment .env file: {env_specific_path}")

    config_path = CONFIG_DIR / f"{env}.yaml"
    logger.info(f"Loading config file: {config_path}")

    data = load_yaml(config_path)
    data = _drop_none(interpolate_env_vars(data))

    config = AppConfig(**data)
    logger.debug(f"Config loaded for server {config.server.host}:{config.server.port}")
    return config
