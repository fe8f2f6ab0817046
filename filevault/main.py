from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from filevault.api.router import api_router
from filevault.config.settings import settings
from filevault.core.api_response import response_error, validation_messages
from filevault.core.exceptions import BaseBusinessException, StoreUnavailableException
from filevault.core.logger import logger
from filevault.core.response_codes import ResponseCodeEnum
from filevault.db.session import create_db_and_tables
from filevault.infra.storage.storage_factory import storage_factory
from filevault.services.auth.auth_service import wait_for_background_tasks


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting filevault, initializing resources...")

    await create_db_and_tables()

    try:
        await storage_factory.get_object_store().ensure_bucket()
    except StoreUnavailableException as e:
        # the service still starts; store calls will fail with STORAGE_UNAVAILABLE
        logger.error(f"Object store bucket check failed: {e}")

    logger.info("✅ Resources initialized")

    yield

    await wait_for_background_tasks()
    logger.info("🛑 filevault stopped")


app = FastAPI(title="filevault", lifespan=lifespan)


@app.exception_handler(BaseBusinessException)
async def business_exception_handler(request: Request, exc: BaseBusinessException):
    logger.warning(f"Business Exception | code: {exc.code}, message: {exc.message}, path: {request.url.path}")
    return response_error(
        code=exc.code_enum,
        http_status=exc.status_code,
        message=exc.message,
        code_override=exc.code,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return response_error(
        code=ResponseCodeEnum.VALIDATION_ERROR,
        message=validation_messages(exc.errors()) or None,
    )


_HTTP_STATUS_CODES = {
    401: ResponseCodeEnum.UNAUTHENTICATED,
    403: ResponseCodeEnum.ACCESS_DENIED,
    404: ResponseCodeEnum.NOT_FOUND,
}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = _HTTP_STATUS_CODES.get(exc.status_code, ResponseCodeEnum.INVALID_REQUEST)
    if exc.status_code >= 500:
        code = ResponseCodeEnum.INTERNAL_ERROR
    return response_error(code=code, http_status=exc.status_code, headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"Unhandled Exception | {exc!r} | path: {request.url.path}")
    return response_error(code=ResponseCodeEnum.INTERNAL_ERROR)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(api_router, prefix=settings.server.api_prefix)
