# filevault/core/exceptions/base_exception.py

from typing import Optional

from filevault.core.response_codes import ResponseCodeEnum


class BaseBusinessException(Exception):
    def __init__(
            self,
            code_enum: Optional[ResponseCodeEnum] = None,
            code: Optional[str] = None,
            status_code: Optional[int] = None,
            message: Optional[str] = None,
            extra: Optional[dict] = None,
    ):
        code_enum = code_enum or ResponseCodeEnum.INTERNAL_ERROR
        self.code_enum = code_enum
        self.code = code if code is not None else code_enum.code
        self.message = message or code_enum.message
        self.status_code = status_code if status_code is not None else code_enum.http_status
        self.extra = extra or {}
        super().__init__(self.message)

    def __str__(self):
        return f"[{self.code}] {self.message}"


class NotFoundException(BaseBusinessException):
    """
    Raised when the requested resource does not exist.
    """
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.NOT_FOUND, message=message)


class InvalidRequestException(BaseBusinessException):
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.INVALID_REQUEST, message=message)


class InternalErrorException(BaseBusinessException):
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.INTERNAL_ERROR, message=message)
