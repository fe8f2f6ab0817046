from filevault.config.config_settings.config_schema import AppConfig
from filevault.config.settings import settings
from filevault.core.logger import get_logger


class BaseService:
    def __init__(self) -> None:
        self.settings: AppConfig = settings
        self.logger = get_logger(self.__class__.__name__)

    @property
    def api_base_url(self) -> str:
        """Absolute base for links handed to clients, e.g. https://host/api"""
        return f"{self.settings.server.public_base_url.rstrip('/')}{self.settings.server.api_prefix}"
