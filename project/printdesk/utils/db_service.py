# printdesk/utils/db_service.py

from typing import Any, Awaitable, Callable, Optional

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from printdesk.services.procedures import PROCEDURES, row_to_dict
from printdesk.utils.database import AsyncSessionLocal
from printdesk.utils.errors import FetchError, ValidationError


class RemoteDataClient:
    """
    Thin query layer over the database: filtered/sorted/paginated table
    reads plus named remote procedures.

    Every call opens its own session, so calls may run concurrently.
    Database failures surface as FetchError.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession] = AsyncSessionLocal, log=None):
        self.session_factory = session_factory
        self.log = log

    async def run(self, label: str, fn: Callable[[AsyncSession], Awaitable[Any]]) -> Any:
        async with self.session_factory() as session:
            try:
                return await fn(session)
            except SQLAlchemyError as e:
                if self.log:
                    await self.log.log_error("remote", f"DB Error ({label})", {"error": str(e)})
                raise FetchError(f"DB Error ({label}): {e}") from e

    @staticmethod
    def column(model, name: str):
        col = model.__table__.columns.get(name)
        if col is None:
            raise ValidationError(f"Unknown column '{name}' for {model.__tablename__}")
        return getattr(model, col.key)

    async def select(
        self,
        model,
        filters: Optional[dict] = None,
        search: Optional[dict] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        skip: int = 0,
        limit: Optional[int] = 100,
    ) -> list[dict]:
        """
        Rows of `model` as dicts.

        filters  -- {column: value}, equality
        search   -- {column: term}, case-insensitive substring
        order_by -- column name, ascending unless `descending`
        """
        query = select(model)
        for name, value in (filters or {}).items():
            query = query.where(self.column(model, name) == value)
        for name, term in (search or {}).items():
            query = query.where(self.column(model, name).ilike(f"%{term}%"))
        if order_by:
            col = self.column(model, order_by)
            query = query.order_by(col.desc() if descending else col.asc())
        if skip:
            query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)

        async def fetch(session: AsyncSession):
            result = await session.execute(query)
            return [row_to_dict(obj) for obj in result.scalars().all()]

        return await self.run(model.__tablename__, fetch)

    async def select_one(self, model, **filters) -> Optional[dict]:
        rows = await self.select(model, filters=filters, limit=1)
        return rows[0] if rows else None

    async def insert(self, model, values: dict) -> dict:
        async def write(session: AsyncSession):
            obj = model(**values)
            session.add(obj)
            await session.commit()
            await session.refresh(obj)
            return row_to_dict(obj)

        return await self.run(model.__tablename__, write)

    async def rpc(self, name: str, **params) -> Any:
        fn = PROCEDURES.get(name)
        if fn is None:
            raise FetchError(f"Unknown remote procedure: {name}")
        return await self.run(name, lambda session: fn(session, **params))


def get_remote_client(request: Request) -> RemoteDataClient:
    """FastAPI dependency."""
    return RemoteDataClient(log=getattr(request.app.state, "log", None))
