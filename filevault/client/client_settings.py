from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """
    Settings of the upload client, read from FILEVAULT_* environment
    variables or a local .env file. Independent of the server config.
    """
    model_config = SettingsConfigDict(env_prefix="FILEVAULT_", env_file=".env", extra="ignore")

    api_key: Optional[str] = None
    base_url: Optional[str] = None
    concurrency: int = 3
    max_attempts: int = 3
    timeout: float = 300.0
