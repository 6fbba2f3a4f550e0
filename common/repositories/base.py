from contextlib import asynccontextmanager
from typing import AsyncGenerator, Generic, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from common.core.otel_axiom_exporter import trace_span
from common.db.scoped import get_session

EntityType = TypeVar("EntityType")
DomainModelType = TypeVar("DomainModelType")
UpdateModelType = TypeVar("UpdateModelType", bound=BaseModel)


class BaseRepository(Generic[EntityType, DomainModelType]):
    """
    Maps one SQLAlchemy entity to its pydantic domain model.

    Without an explicit ``db_session`` every call goes through
    ``get_session()``: inside a unit of work that is the transaction's
    session, outside one a short-lived session per call.

    Reads by id always refresh the identity map, so a row updated with a
    bulk UPDATE earlier in the transaction is read back with its new values.
    """

    def __init__(
        self,
        entity_class: Type[EntityType],
        domain_class: Type[DomainModelType],
        db_session: Optional[AsyncSession] = None,
    ):
        self.entity_class = entity_class
        self.domain_class = domain_class
        self._explicit_session = db_session

    @asynccontextmanager
    async def _get_session(self) -> AsyncGenerator[AsyncSession, None]:
        if self._explicit_session is not None:
            yield self._explicit_session
            return
        async with get_session() as session:
            yield session

    def _entity_to_domain(self, entity: EntityType) -> DomainModelType:
        return self.domain_class.model_validate(entity)

    def _entities_to_domain(self, entities: Iterable[EntityType]) -> List[DomainModelType]:
        return [self._entity_to_domain(entity) for entity in entities]

    @trace_span
    async def get(self, id: int) -> Optional[DomainModelType]:
        async with self._get_session() as session:
            result = await session.execute(
                select(self.entity_class)
                .where(self.entity_class.id == id)
                .execution_options(populate_existing=True)
            )
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def update(
        self, id: int, update_model: UpdateModelType
    ) -> Optional[DomainModelType]:
        """Write the fields set on ``update_model`` and return the fresh row."""
        changes = update_model.model_dump(exclude_unset=True)
        if changes:
            async with self._get_session() as session:
                await session.execute(
                    update(self.entity_class)
                    .where(self.entity_class.id == id)
                    .values(changes)
                )
                await session.flush()
        return await self.get(id)
