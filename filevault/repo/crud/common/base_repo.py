from datetime import datetime
from math import ceil
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import asc, delete, desc, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from filevault.core.logger import get_logger
from filevault.infra.db.repo_registrar import RepositoryRegistrar
from filevault.models._model_utils.datetime import utcnow
from filevault.schemas.common.page_schemas import PageResponse

ModelType = TypeVar("ModelType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)

logger = get_logger(__name__)


class BaseRepository(Generic[ModelType, CreateSchemaType], RepositoryRegistrar):
    def __init__(self, db: AsyncSession, model: Type[ModelType], context: dict = None):
        self.db = db
        self.model = model
        self.context = context or {}

    # ==========================
    # Create
    # ==========================

    async def create(self, obj_in: Union[CreateSchemaType, Dict[str, Any]]) -> ModelType:
        """Add a new row to the session and flush it so defaults are populated."""
        create_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        db_obj = self.model(**create_data)
        self.db.add(db_obj)
        await self.db.flush()
        await self.db.refresh(db_obj)
        return db_obj

    # ==========================
    # Update
    # ==========================

    async def update(self, db_obj: ModelType, obj_in: Union[BaseModel, Dict[str, Any]]) -> ModelType:
        """Read-modify-write update of an ORM instance."""
        update_data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            setattr(db_obj, field, value)

        if hasattr(db_obj, "updated_at"):
            setattr(db_obj, "updated_at", utcnow())

        self.db.add(db_obj)
        await self.db.flush()
        await self.db.refresh(db_obj)
        return db_obj

    async def update_by_id(self, item_id: Any, update_data: Dict[str, Any]) -> int:
        """Direct UPDATE by primary key, returns the affected row count."""
        if not update_data:
            return 0

        if hasattr(self.model, "updated_at"):
            update_data["updated_at"] = utcnow()

        stmt = (
            update(self.model)
            .where(self.model.id == item_id)
            .values(**update_data)
        )
        result = await self.db.execute(stmt)
        return result.rowcount

    # ==========================
    # Delete
    # ==========================

    async def delete(self, db_obj: ModelType) -> None:
        """Physically delete one row."""
        await self.db.delete(db_obj)
        await self.db.flush()

    async def delete_where(self, *conditions) -> int:
        """Bulk hard delete, returns the affected row count."""
        stmt = delete(self.model).where(*conditions)
        result = await self.db.execute(stmt)
        return result.rowcount

    async def soft_delete(self, db_obj: ModelType) -> ModelType:
        """Flag one row as deleted (is_deleted = True)."""
        now = utcnow()
        if hasattr(db_obj, "updated_at"):
            setattr(db_obj, "updated_at", now)
        if hasattr(db_obj, "is_deleted"):
            setattr(db_obj, "is_deleted", True)
        if hasattr(db_obj, "deleted_at"):
            setattr(db_obj, "deleted_at", now)

        self.db.add(db_obj)
        await self.db.flush()
        await self.db.refresh(db_obj)
        return db_obj

    async def soft_delete_by_ids(self, ids: List[UUID]) -> int:
        """
        Bulk soft delete by primary key.

        Returns:
            number of rows flagged.
        """
        if not ids:
            return 0

        update_values = {
            "is_deleted": True,
            "deleted_at": utcnow(),
        }
        if hasattr(self.model, "updated_at"):
            update_values["updated_at"] = utcnow()

        stmt = (
            update(self.model)
            .where(self.model.id.in_(ids))
            .values(**update_values)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount

    # ==========================
    # Query
    # ==========================

    def _base_stmt(self):
        """
        Base SELECT; soft-deleted rows are filtered out when the model supports it.
        """
        stmt = select(self.model)
        if hasattr(self.model, "is_deleted"):
            stmt = stmt.where(getattr(self.model, "is_deleted") == False)  # noqa: E712
        return stmt

    async def get_by_id(self, id: Any) -> Optional[ModelType]:
        stmt = self._base_stmt().where(self.model.id == id)
        return await self._run_and_scalar(stmt, "get_by_id")

    async def find_by_field(self, value: Any, field_name: str) -> Optional[ModelType]:
        column = getattr(self.model, field_name)
        stmt = self._base_stmt().where(column == value)
        return await self._run_and_scalar(stmt, f"find_by_{field_name}")

    async def count(self, stmt_in=None) -> int:
        stmt = stmt_in if stmt_in is not None else self._base_stmt()
        count_stmt = select(func.count()).select_from(stmt.subquery())
        result = await self.db.execute(count_stmt)
        return result.scalar_one_or_none() or 0

    def apply_ordering(self, stmt, order_by: List[str]):
        """'-field' sorts descending, 'field' ascending."""
        for sort_field in order_by:
            order_func = asc
            if sort_field.startswith("-"):
                sort_field = sort_field[1:]
                order_func = desc

            column = getattr(self.model, sort_field, None)
            if column is not None:
                stmt = stmt.order_by(order_func(column))
        return stmt

    async def get_paged_list(
            self,
            *,
            page: int = 1,
            per_page: int = 10,
            sort_by: Optional[List[str]] = None,
            stmt_in: Optional[Any] = None,
            clamp_page: bool = False,
    ) -> PageResponse[ModelType]:
        """
        Generic paged query. With clamp_page the requested page is pulled back
        to the last existing page instead of returning an empty slice.
        """
        stmt = stmt_in if stmt_in is not None else self._base_stmt()

        total = await self.count(stmt)
        total_pages = ceil(total / per_page) if per_page > 0 else 0

        if clamp_page:
            page = min(page, total_pages) if total_pages > 0 else 1

        if total == 0:
            return PageResponse(items=[], total=0, page=page, per_page=per_page, total_pages=0)

        stmt = self.apply_ordering(stmt, sort_by or [])
        stmt = stmt.offset((page - 1) * per_page).limit(per_page)

        items = await self._run_and_scalars(stmt, "get_paged_list")

        return PageResponse(
            items=items,
            total=total,
            page=page,
            per_page=per_page,
            total_pages=total_pages,
        )

    async def _run_and_scalar(self, stmt, method: str):
        try:
            result = await self.db.execute(stmt)
            return result.scalars().first()
        except Exception as e:
            logger.error(f"[{self.__class__.__name__}.{method}] Failed: {e}")
            raise

    async def _run_and_scalars(self, stmt, method: str):
        try:
            result = await self.db.execute(stmt)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"[{self.__class__.__name__}.{method}] Failed: {e}")
            raise


def expired_before(column, now: datetime):
    """WHERE clause: column is set and lies strictly before now."""
    return (column.is_not(None)) & (column < now)
