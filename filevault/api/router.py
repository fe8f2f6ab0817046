from fastapi import APIRouter

from filevault.api.routes import health_router
from filevault.api.routes.admin import maintenance_router
from filevault.api.routes.files import download_router, file_router, upload_router
from filevault.api.routes.users import api_key_router, profile_router

api_router = APIRouter()

# one entry per router: router, prefix, tags
routers_to_include = [
    # files
    {"router": upload_router.router, "prefix": "/upload", "tags": ["upload"]},
    {"router": file_router.router, "prefix": "/files", "tags": ["files"]},
    {"router": download_router.router, "prefix": "", "tags": ["download"]},

    # users
    {"router": api_key_router.router, "prefix": "/keys", "tags": ["keys"]},
    {"router": profile_router.router, "prefix": "/profile", "tags": ["profile"]},

    # maintenance
    {"router": maintenance_router.router, "prefix": "/admin", "tags": ["admin"]},
    {"router": health_router.router, "prefix": "", "tags": ["health"]},
]

for route_config in routers_to_include:
    api_router.include_router(**route_config)
