# import every table model so SQLModel.metadata knows about them
from filevault.models.users.user import User
from filevault.models.users.api_key import ApiKey
from filevault.models.files.file_record import FileRecord
from filevault.models.files.upload_session import UploadSession
from filevault.models.files.file_share import FileShare

__all__ = ["User", "ApiKey", "FileRecord", "UploadSession", "FileShare"]
