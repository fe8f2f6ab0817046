# === authentication / authorization ===
from filevault.core.exceptions.base_exception import BaseBusinessException
from filevault.core.response_codes import ResponseCodeEnum


class UnauthenticatedException(BaseBusinessException):
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.UNAUTHENTICATED, message=message)


class AccessDeniedException(BaseBusinessException):
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.ACCESS_DENIED, message=message)


class MaxApiKeysReachedException(BaseBusinessException):
    def __init__(self, limit: int):
        super().__init__(
            ResponseCodeEnum.MAX_KEYS_REACHED,
            message=f"Maximum API key limit reached. You can only have {limit} API keys.",
        )


class InvalidKeyNameException(BaseBusinessException):
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.INVALID_NAME, message=message)


class KeyNameTooLongException(BaseBusinessException):
    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.NAME_TOO_LONG, message=message)
