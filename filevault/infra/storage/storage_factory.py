import threading
from typing import Optional

from filevault.config.config_settings.config_schema import S3Params
from filevault.config.settings import settings
from filevault.core.logger import logger
from filevault.infra.storage.object_store import ObjectStore
from filevault.infra.storage.s3_client import S3CompatibleClient
from filevault.infra.storage.storage_interface import StorageClientInterface


class StorageFactory:
    """
    Process-wide singleton that owns the storage driver.

    The driver is built lazily on first use so importing the app never
    touches the network; the bucket check runs from the app lifespan.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls, *args, **kwargs):
        if not cls._instance:
            with cls._lock:
                if not cls._instance:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config: Optional[S3Params] = None):
        if getattr(self, "_initialized", False):
            return
        with self._lock:
            if getattr(self, "_initialized", False):
                return
            self._config = config or settings.storage
            self._client: Optional[StorageClientInterface] = None
            self._store: Optional[ObjectStore] = None
            self._initialized = True

    def get_client(self) -> StorageClientInterface:
        if self._client is None:
            with self._lock:
                if self._client is None:
                    logger.info(f"Initializing storage client for bucket '{self._config.bucket_name}'...")
                    self._client = S3CompatibleClient(config=self._config)
        return self._client

    def get_object_store(self) -> ObjectStore:
        if self._store is None:
            self._store = ObjectStore(self.get_client(), signed_url_ttl=self._config.signed_url_ttl)
        return self._store


storage_factory = StorageFactory()
