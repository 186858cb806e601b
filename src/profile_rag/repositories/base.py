"""Base repository class with common CRUD operations."""

from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from profile_rag.database.models import Base
from profile_rag.utils.errors import DatabaseError
from profile_rag.utils.logging import get_logger

logger = get_logger("repositories")

# Type variable for the model type
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with common CRUD operations."""

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by_id(self, id: str) -> Optional[ModelType]:
        """
        Get a record by ID.

        Returns:
            Model instance or None if not found
        """
        try:
            result = await self.session.execute(select(self.model).where(self.model.id == id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting {self.model.__name__} by ID {id}: {e}")
            raise DatabaseError(f"Failed to retrieve {self.model.__name__}") from e

    async def list_by(
        self, order_by: Optional[Any] = None, **filters: Any
    ) -> List[ModelType]:
        """
        List records matching equality filters.

        Args:
            order_by: Optional column expression to sort by
            **filters: field=value pairs

        Returns:
            List of model instances
        """
        try:
            query = select(self.model)
            for field, value in filters.items():
                query = query.where(getattr(self.model, field) == value)
            if order_by is not None:
                query = query.order_by(order_by)
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing {self.model.__name__}: {e}")
            raise DatabaseError(f"Failed to retrieve {self.model.__name__} records") from e

    async def add(self, instance: ModelType) -> ModelType:
        """Insert a new record."""
        try:
            self.session.add(instance)
            await self.session.flush()
            await self.session.refresh(instance)
            logger.debug(f"Created {self.model.__name__} with ID: {instance.id}")
            return instance
        except SQLAlchemyError as e:
            logger.error(f"Error creating {self.model.__name__}: {e}")
            raise DatabaseError(f"Failed to create {self.model.__name__}") from e

    async def add_all(self, instances: List[ModelType]) -> List[ModelType]:
        """Insert several records in one flush."""
        try:
            self.session.add_all(instances)
            await self.session.flush()
            return instances
        except SQLAlchemyError as e:
            logger.error(f"Error creating {self.model.__name__} batch: {e}")
            raise DatabaseError(f"Failed to create {self.model.__name__} records") from e

    async def update(self, id: str, **kwargs: Any) -> Optional[ModelType]:
        """
        Update a record by ID.

        Returns:
            Updated model instance or None if not found
        """
        try:
            instance = await self.get_by_id(id)
            if not instance:
                return None

            for field, value in kwargs.items():
                setattr(instance, field, value)

            await self.session.flush()
            await self.session.refresh(instance)
            logger.debug(f"Updated {self.model.__name__} with ID: {id}")
            return instance
        except SQLAlchemyError as e:
            logger.error(f"Error updating {self.model.__name__} with ID {id}: {e}")
            raise DatabaseError(f"Failed to update {self.model.__name__}") from e

    async def delete(self, id: str) -> bool:
        """
        Delete a record by ID.

        Returns:
            True if deleted, False if not found
        """
        try:
            instance = await self.get_by_id(id)
            if not instance:
                return False

            await self.session.delete(instance)
            await self.session.flush()
            logger.debug(f"Deleted {self.model.__name__} with ID: {id}")
            return True
        except SQLAlchemyError as e:
            logger.error(f"Error deleting {self.model.__name__} with ID {id}: {e}")
            raise DatabaseError(f"Failed to delete {self.model.__name__}") from e
