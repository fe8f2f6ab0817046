from enum import Enum


class ResponseCodeEnum(Enum):

    # === generic ===
    SUCCESS = ("SUCCESS", 200, "Request succeeded")
    CREATED = ("CREATED", 201, "Resource created")
    VALIDATION_ERROR = ("VALIDATION_ERROR", 400, "Request validation failed")
    INVALID_REQUEST = ("INVALID_REQUEST", 400, "Invalid request body")
    NOT_FOUND = ("NOT_FOUND", 404, "Resource not found")
    INTERNAL_ERROR = ("INTERNAL_ERROR", 500, "Internal server error")

    # === auth ===
    UNAUTHENTICATED = ("UNAUTHENTICATED", 401, "Authentication required")
    ACCESS_DENIED = ("ACCESS_DENIED", 403, "Access denied")

    # === upload ===
    INVALID_CONTENT_TYPE = ("INVALID_CONTENT_TYPE", 400, "Content-Type must be multipart/form-data")
    INVALID_FILE_TYPE = ("INVALID_FILE_TYPE", 400, "File type is not allowed")
    FILENAME_TOO_LONG = ("FILENAME_TOO_LONG", 400, "File name is too long")
    FILE_TOO_LARGE = ("FILE_TOO_LARGE", 400, "File exceeds the maximum allowed size")
    NO_FILE = ("NO_FILE", 400, "No file was provided")
    INVALID_METADATA = ("INVALID_METADATA", 400, "Metadata must be a valid JSON object")
    INVALID_UPLOAD_OPTIONS = ("INVALID_UPLOAD_OPTIONS", 400, "Invalid upload options")
    PARSE_ERROR = ("PARSE_ERROR", 400, "Failed to parse multipart body")
    UPLOAD_ERROR = ("UPLOAD_ERROR", 500, "Failed to store file")
    METADATA_ERROR = ("METADATA_ERROR", 500, "Failed to record file metadata")

    # === file access ===
    FILE_NOT_FOUND = ("FILE_NOT_FOUND", 404, "File not found")
    FILE_EXPIRED = ("FILE_EXPIRED", 410, "File has expired")
    FILE_MISSING_IN_STORAGE = ("FILE_MISSING_IN_STORAGE", 404, "File not found in storage")
    PREVIEW_NOT_SUPPORTED = ("PREVIEW_NOT_SUPPORTED", 415, "Preview is not supported for this file type")
    STORAGE_UNAVAILABLE = ("STORAGE_UNAVAILABLE", 500, "Storage is temporarily unavailable")

    # === api keys ===
    MAX_KEYS_REACHED = ("MAX_KEYS_REACHED", 400, "Maximum API key limit reached")
    INVALID_NAME = ("INVALID_NAME", 400, "API key name is required")
    NAME_TOO_LONG = ("NAME_TOO_LONG", 400, "API key name must be less than 100 characters")

    def __init__(self, code: str, http_status: int, message: str):
        self._code = code
        self._http_status = http_status
        self._message = message

    @property
    def code(self):
        return self._code

    @property
    def http_status(self):
        return self._http_status

    @property
    def message(self):
        return self._message
