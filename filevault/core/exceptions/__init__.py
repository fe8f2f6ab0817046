# filevault/core/exceptions/__init__.py

from .base_exception import (
    BaseBusinessException,
    NotFoundException,
    InvalidRequestException,
    InternalErrorException,
)
from .auth_exceptions import (
    UnauthenticatedException,
    AccessDeniedException,
    MaxApiKeysReachedException,
    InvalidKeyNameException,
    KeyNameTooLongException,
)
from .file_exceptions import (
    FileNotFoundException,
    FileExpiredException,
    FileMissingInStorageException,
    PreviewNotSupportedException,
    UploadRejectedException,
    UploadFailedException,
)
from .storage_exceptions import (
    ObjectNotFoundException,
    StoreUnavailableException,
)

__all__ = [
    "BaseBusinessException",
    "NotFoundException",
    "InvalidRequestException",
    "InternalErrorException",

    "UnauthenticatedException",
    "AccessDeniedException",
    "MaxApiKeysReachedException",
    "InvalidKeyNameException",
    "KeyNameTooLongException",

    "FileNotFoundException",
    "FileExpiredException",
    "FileMissingInStorageException",
    "PreviewNotSupportedException",
    "UploadRejectedException",
    "UploadFailedException",

    "ObjectNotFoundException",
    "StoreUnavailableException",
]
