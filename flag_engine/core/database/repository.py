"""Generic async repository over one mapped model.

Methods take the session explicitly and only ever flush; committing is the
calling service's job, so a mutation and its cache invalidation can be
ordered.

Example:
    class FeatureFlagRepository(BaseRepository[FeatureFlag]):
        async def get_by_key(self, session: AsyncSession, key: str) -> FeatureFlag | None:
            return await self.get_by(session, FeatureFlag.key, key)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import exists as sql_exists
from sqlalchemy import select

from flag_engine.core.database.exceptions import NotFoundError
from flag_engine.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.orm import InstrumentedAttribute

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """get / get_or_raise / get_by / list / exists / create / save / delete for ``model``."""

    __slots__ = ("model", "_logger", "_lazy")

    def __init__(self, model: type[T]) -> None:
        self.model = model
        name = f"repository.{model.__name__}"
        self._logger = logging.getLogger(name)
        self._lazy = get_lazy_logger(name)

    def _select(self, options: Iterable[Any] | None) -> Select[tuple[T]]:
        stmt = select(self.model)
        return stmt.options(*options) if options else stmt

    async def get(
        self,
        session: AsyncSession,
        id: Any,  # noqa: A002
        *,
        options: Iterable[Any] | None = None,
    ) -> T | None:
        """Fetch by primary key; loader ``options`` force a SELECT."""
        if options:
            stmt = self._select(options).where(self.model.id == id)  # type: ignore[attr-defined]
            instance = (await session.execute(stmt)).scalar_one_or_none()
        else:
            instance = await session.get(self.model, id)
        self._lazy.debug(lambda: f"get {self.model.__name__}({id}) -> {instance is not None}")
        return instance

    async def get_or_raise(
        self,
        session: AsyncSession,
        id: Any,  # noqa: A002
        *,
        options: Iterable[Any] | None = None,
    ) -> T:
        """Like ``get`` but a missing row raises.

        Raises:
            NotFoundError: If no row has this primary key.
        """
        instance = await self.get(session, id, options=options)
        if instance is None:
            raise NotFoundError(self.model.__name__, {"id": id})
        return instance

    async def get_by(
        self,
        session: AsyncSession,
        attr: InstrumentedAttribute[Any],
        value: Any,
        *,
        options: Iterable[Any] | None = None,
    ) -> T | None:
        """Fetch the single row where the unique column ``attr`` equals ``value``."""
        stmt = self._select(options).where(attr == value)
        instance = (await session.execute(stmt)).scalar_one_or_none()
        self._lazy.debug(
            lambda: f"get_by {self.model.__name__}.{attr.key}={value!r} -> {instance is not None}"
        )
        return instance

    async def list(
        self,
        session: AsyncSession,
        *,
        limit: int | None = None,
        offset: int = 0,
        order_by: Any = None,
        options: Iterable[Any] | None = None,
    ) -> Sequence[T]:
        stmt = self._select(options)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        items = (await session.execute(stmt)).scalars().all()
        self._lazy.debug(lambda: f"list {self.model.__name__} -> {len(items)} rows")
        return items

    async def exists(self, session: AsyncSession, attr: InstrumentedAttribute[Any], value: Any) -> bool:
        return bool(await session.scalar(select(sql_exists().where(attr == value))))

    async def create(self, session: AsyncSession, instance: T) -> T:
        """Add, flush and refresh so generated columns are populated."""
        session.add(instance)
        await session.flush()
        await session.refresh(instance)
        return instance

    async def save(self, session: AsyncSession, instance: T) -> T:
        session.add(instance)
        await session.flush()
        return instance

    async def delete(self, session: AsyncSession, instance: T) -> None:
        await session.delete(instance)
        await session.flush()
        self._logger.info(
            "Deleted %s",
            self.model.__name__,
            extra={"entity": self.model.__name__, "id": str(getattr(instance, "id", ""))},
        )
