from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


DEFAULT_ALLOWED_EXTENSIONS = [
    # images
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".bmp",
    # documents
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".odt", ".ods", ".odp",
    # text / data
    ".txt", ".csv", ".json", ".xml", ".md",
    # archives
    ".zip", ".rar", ".7z", ".tar", ".gz",
    # media
    ".mp3", ".mp4", ".avi", ".mov", ".wav", ".flv", ".wmv", ".mkv",
    # source
    ".js", ".ts", ".html", ".css", ".php", ".py", ".java", ".cpp",
]

DEFAULT_PREVIEWABLE_TYPES = [
    "image/jpeg", "image/png", "image/gif", "image/webp", "image/svg+xml",
    "application/pdf",
    "text/plain", "text/html", "text/css", "text/javascript",
    "application/json", "application/xml", "text/xml",
    "video/mp4", "video/webm", "video/quicktime",
    "audio/mpeg", "audio/wav", "audio/mp4",
]


class S3Params(BaseModel):
    """
    Connection parameters for the S3 compatible object store
    (AWS S3, Cloudflare R2, MinIO).
    """

    endpoint: Optional[str] = None
    """
    Host (without scheme) of the S3 API.
    - AWS S3: leave empty, boto3 derives it from the region.
    - R2 / MinIO: required, e.g. '<account>.r2.cloudflarestorage.com' or 'minio:9000'
    """

    region: str = "auto"
    access_key: str
    secret_key: str
    bucket_name: str
    secure: bool = True

    public_base_url: Optional[str] = None
    """
    Full public base URL (with scheme). When set, preview redirects join this
    with the storage key instead of issuing a presigned URL.
    """

    signed_url_ttl: int = Field(default=3600, description="Presigned GET lifetime in seconds")
    path_style: bool = Field(default=False, description="Force path-style addressing (MinIO)")
    create_bucket: bool = Field(default=False, description="Create the bucket on startup when missing")

    connect_timeout: int = 10
    read_timeout: int = 60


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"
    api_prefix: str = "/api"
    public_base_url: str = "http://localhost:8000"
    env: str = "dev"


class DatabaseConfig(BaseModel):
    url: str
    echo: bool = False


class LoggingConfig(BaseModel):
    enable_file: bool = True
    log_dir: str = "./logs"
    rotation: str = "1 week"
    retention: str = "1 month"


class UploadSettings(BaseModel):
    max_file_size: int = Field(default=100 * 1024 * 1024, gt=0, description="Maximum upload size in bytes")
    allowed_extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_EXTENSIONS))
    previewable_mime_types: List[str] = Field(default_factory=lambda: list(DEFAULT_PREVIEWABLE_TYPES))
    spool_max_memory: int = Field(default=8 * 1024 * 1024, description="Bytes kept in memory before spooling to disk")
    max_field_size: int = Field(default=64 * 1024, description="Maximum size of a non-file form field")

    @model_validator(mode="after")
    def normalize_extensions(self) -> "UploadSettings":
        self.allowed_extensions = [
            ext.lower() if ext.startswith(".") else f".{ext.lower()}"
            for ext in self.allowed_extensions
        ]
        return self


class SecuritySettings(BaseModel):
    session_secret: str
    session_cookie_name: str = "filevault_session"
    session_algorithm: str = "HS256"
    session_audience: Optional[str] = None
    api_key_encryption_key: str
    api_key_prefix: str = "fv"
    max_api_keys: int = 3
    admin_api_key: Optional[str] = None


class CleanupSettings(BaseModel):
    delete_concurrency: int = Field(default=10, gt=0)


# ========================================================================================
#
#   Every section model must be declared above AppConfig
#
# ========================================================================================
class AppConfig(BaseModel):
    server: ServerConfig
    database: DatabaseConfig
    logging: LoggingConfig
    storage: S3Params
    upload: UploadSettings = Field(default_factory=UploadSettings)
    security_settings: SecuritySettings
    cleanup: CleanupSettings = Field(default_factory=CleanupSettings)
