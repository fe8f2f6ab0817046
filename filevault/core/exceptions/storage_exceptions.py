from filevault.core.exceptions.base_exception import BaseBusinessException
from filevault.core.response_codes import ResponseCodeEnum


class ObjectNotFoundException(Exception):
    """
    Raised by the object store gateway when a key does not exist.
    Internal only: callers translate it into FileMissingInStorageException
    or treat it as success (delete).
    """
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Object not found: {key}")


class StoreUnavailableException(BaseBusinessException):
    """Transport, auth or any other non-404 failure talking to the object store."""
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.STORAGE_UNAVAILABLE, message=message)
