from typing import Any, Dict, Generic, List, Optional, TypeVar

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from filevault.core.logger import get_logger
from filevault.core.response_codes import ResponseCodeEnum

logger = get_logger(__name__)

T = TypeVar("T")


# === Generic Pydantic response schema (OpenAPI only) ===
class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class StandardResponse(BaseModel, Generic[T]):
    success: bool
    code: str
    message: str
    data: Optional[T] = None
    pagination: Optional[PaginationMeta] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": True,
                "code": "SUCCESS",
                "message": "Request succeeded",
                "data": {},
            }
        }
    }


def to_json_compatible(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump()
    if isinstance(data, list):
        return [to_json_compatible(item) for item in data]
    if isinstance(data, dict):
        return {k: to_json_compatible(v) for k, v in data.items()}
    return data


# === success ===
def response_success(
    data: Any = None,
    code: ResponseCodeEnum = ResponseCodeEnum.SUCCESS,
    http_status: int = 200,
    message: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    pagination: Optional[PaginationMeta] = None,
) -> JSONResponse:
    final_message = message or code.message
    logger.debug(f"Response Success | code: {code.code}, message: {final_message}")

    content = {
        "success": True,
        "code": code.code,
        "message": final_message,
        "data": jsonable_encoder(to_json_compatible(data)),
    }
    if pagination is not None:
        content["pagination"] = pagination.model_dump()

    return JSONResponse(status_code=http_status, content=content, headers=headers)


# === error ===
def response_error(
    code: ResponseCodeEnum,
    http_status: Optional[int] = None,
    message: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    code_override: Optional[str] = None,
) -> JSONResponse:
    final_status = http_status or code.http_status
    final_message = message or code.message
    final_code = code_override or code.code
    logger.warning(f"Response Error | http_status: {final_status}, code: {final_code}, message: {final_message}")

    return JSONResponse(
        status_code=final_status,
        content={
            "success": False,
            "code": final_code,
            "message": final_message,
            "data": None,
        },
        headers=headers,
    )


def validation_messages(errors: List[dict]) -> str:
    """Flatten FastAPI validation errors into one readable line."""
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)
