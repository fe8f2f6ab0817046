from typing import Optional

from filevault.core.exceptions.base_exception import BaseBusinessException
from filevault.core.response_codes import ResponseCodeEnum


# === file lookup / reconciliation ===
class FileNotFoundException(BaseBusinessException):
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.FILE_NOT_FOUND, message=message)


class FileExpiredException(BaseBusinessException):
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.FILE_EXPIRED, message=message)


class FileMissingInStorageException(BaseBusinessException):
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.FILE_MISSING_IN_STORAGE, message=message)


class PreviewNotSupportedException(BaseBusinessException):
    def __init__(self, mime_type: Optional[str] = None):
        message = None
        if mime_type:
            message = f"Preview is not supported for {mime_type}"
        super().__init__(ResponseCodeEnum.PREVIEW_NOT_SUPPORTED, message=message)


# === ingestion ===
class UploadRejectedException(BaseBusinessException):
    """
    The upload failed validation. The code is one of INVALID_CONTENT_TYPE,
    INVALID_FILE_TYPE, FILE_TOO_LARGE, NO_FILE, INVALID_METADATA,
    INVALID_UPLOAD_OPTIONS or PARSE_ERROR.
    """
    def __init__(self, code_enum: ResponseCodeEnum, message: str = None):
        super().__init__(code_enum, message=message)


class UploadFailedException(BaseBusinessException):
    """The upload was valid but the store write (UPLOAD_ERROR) or catalog insert (METADATA_ERROR) failed."""
    def __init__(self, code_enum: ResponseCodeEnum = ResponseCodeEnum.UPLOAD_ERROR, message: str = None):
        super().__init__(code_enum, message=message)
