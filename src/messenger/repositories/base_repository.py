"""
Base repository class providing common database operations.

A reusable foundation for repositories built on SQLAlchemy's async sessions.
Model-specific repositories inherit the generic CRUD helpers below and add
their own queries. Nothing here commits: repositories flush, and the caller
owns the transaction (commit or rollback).
"""
import time
import logging
from typing import TypeVar, Generic, Type, Any

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from messenger.database.base import Base
from messenger.exceptions.base import (
    RepositoryError,
    DuplicateError,
    NotFoundError,
    InvalidFieldError,
)
from messenger.exceptions.mapper import db_error_handler
from messenger.validators.exception_validators import (
    find_unknown_model_kwargs,
    get_required_columns,
    find_unique_conflicts,
)

# Type variable for the model class
ModelType = TypeVar("ModelType", bound=Base)

logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelType]):
    """
    Generic base repository providing common CRUD operations.

    Type Parameters:
        ModelType: The SQLAlchemy model class this repository manages.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Args:
            model: The SQLAlchemy model class itself (e.g. `User`, not `User()`),
                used to build queries such as `select(self.model)`.
            db: The async database session the caller owns.
        """
        self.model = model
        self.db = db

    # =================================================================================================================
    # Create
    # =================================================================================================================

    async def create(self, **kwargs) -> ModelType:
        """
        Validate and insert an entity, then flush so generated fields (id, created_at) are available.

        Logging:
        - DEBUG: start event with model name and provided keys (never values).
        - INFO: expected input errors (invalid fields, missing required, duplicate).
        - INFO: success event with created id and duration_ms.

        Raises:
            InvalidFieldError: If kwargs contain names that are not mapped attributes.
            RepositoryError: If NOT NULL columns without defaults are missing.
            DuplicateError: If a unique column already holds the value.
        """
        model_name = self.model.__name__
        logger.debug(
            "repo.create.start",
            extra={"model": model_name, "operation": "create", "provided_keys": sorted(kwargs.keys())},
        )

        # 1) unknown fields
        unknown = find_unknown_model_kwargs(self.model, kwargs)
        if unknown:
            logger.info(
                "repo.create.invalid_fields",
                extra={"model": model_name, "operation": "create", "invalid_fields": sorted(unknown)},
            )
            raise InvalidFieldError(f"Unknown field(s) for {model_name}: {', '.join(unknown)}", fields=unknown)

        # 2) required fields (missing or explicitly None)
        missing = [c for c in get_required_columns(self.model) if kwargs.get(c) is None]
        if missing:
            logger.info(
                "repo.create.missing_required",
                extra={"model": model_name, "operation": "create", "missing_fields": sorted(missing)},
            )
            raise RepositoryError(
                f"Missing required field(s): {', '.join(missing)} for {model_name}",
                fields=missing, error_code="invalid_input",
            )

        # 3) unique pre-check (best-effort; the constraint still decides)
        conflicts = await find_unique_conflicts(self.db, self.model, kwargs)
        if conflicts:
            logger.info(
                "repo.create.duplicate_precheck",
                extra={"model": model_name, "operation": "create", "conflict_fields": sorted(conflicts)},
            )
            raise DuplicateError(
                f"{model_name} already exists for field(s): {', '.join(sorted(conflicts))}",
                fields=sorted(conflicts),
            )

        # 4) write, mapping integrity errors from races
        start = time.perf_counter()
        async with db_error_handler(self.db, model_name):
            entity = self.model(**kwargs)
            self.db.add(entity)
            await self.db.flush()
            await self.db.refresh(entity)

        logger.info(
            "repo.create.success",
            extra={
                "model": model_name,
                "operation": "create",
                "id": getattr(entity, "id", None),
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return entity

    # =================================================================================================================
    # Read
    # =================================================================================================================

    async def get_by_id(self, entity_id: int) -> ModelType | None:
        """
        Get an entity by its primary key.

        Returns:
            The entity if found, otherwise None

        Raises:
            RepositoryError: If the query fails.
        """
        try:
            result = await self.db.execute(select(self.model).where(self.model.id == entity_id))
            entity = result.scalar_one_or_none()
            logger.debug(f"Retrieved {self.model.__name__} by ID: {entity_id}")
            return entity
        except Exception as e:
            logger.error(f"Error retrieving {self.model.__name__} by ID {entity_id}: {e}")
            raise RepositoryError(f"Failed to retrieve {self.model.__name__}") from e

    async def get_by_id_or_raise(self, entity_id: int) -> ModelType:
        """
        Get an entity by its primary key or raise NotFoundError.

        Raises:
            NotFoundError: If the entity does not exist.
        """
        entity = await self.get_by_id(entity_id)
        if entity is None:
            raise NotFoundError(f"{self.model.__name__} with ID {entity_id} not found")
        return entity

    async def find_by_field(self, field: str, value: Any) -> ModelType | None:
        """
        Find a single entity by any mapped field (e.g. a user's `slug`).

        Raises:
            InvalidFieldError: If the field does not exist on the model.
            RepositoryError: If the query fails.
        """
        if find_unknown_model_kwargs(self.model, {field: value}):
            raise InvalidFieldError(f"{self.model.__name__} has no field '{field}'", fields=[field])

        try:
            result = await self.db.execute(select(self.model).where(getattr(self.model, field) == value))
            entity = result.scalar_one_or_none()
            logger.debug(f"Found {self.model.__name__} by {field}: {value}")
            return entity
        except Exception as e:
            logger.error(f"Error finding {self.model.__name__} by {field}={value}: {e}")
            raise RepositoryError(f"Failed to find {self.model.__name__}") from e

    async def exists(self, entity_id: int) -> bool:
        """Check whether a row with this primary key exists (selects only the id column)."""
        try:
            result = await self.db.execute(select(self.model.id).where(self.model.id == entity_id))
            exists = result.scalar() is not None
            logger.debug(f"{self.model.__name__} with ID {entity_id} exists: {exists}")
            return exists
        except Exception as e:
            logger.error(f"Error checking existence of {self.model.__name__} {entity_id}: {e}")
            raise RepositoryError(f"Failed to check {self.model.__name__} existence") from e

    async def count(self, **filters: Any) -> int:
        """
        Count entities matching equality filters (e.g. `count(receiver_id=3)`).

        Filters naming unknown fields, or carrying None, are skipped.
        """
        try:
            query = select(func.count(self.model.id))
            for field, value in filters.items():
                if hasattr(self.model, field) and value is not None:
                    query = query.where(getattr(self.model, field) == value)

            result = await self.db.execute(query)
            count = result.scalar() or 0
            logger.debug(f"Counted {count} {self.model.__name__} entities")
            return count
        except Exception as e:
            logger.error(f"Error counting {self.model.__name__}: {e}")
            raise RepositoryError(f"Failed to count {self.model.__name__} entities") from e

    # =================================================================================================================
    # Delete
    # =================================================================================================================

    async def delete(self, entity_id: int) -> bool:
        """
        Hard-delete an entity by primary key.

        Returns:
            True if a row was deleted, False if none matched (deletion is idempotent).
        """
        try:
            result = await self.db.execute(delete(self.model).where(self.model.id == entity_id))
            if result.rowcount > 0:
                logger.debug(f"Deleted {self.model.__name__} with ID: {entity_id}")
                return True
            logger.warning(f"{self.model.__name__} with ID {entity_id} not found for deletion")
            return False
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error deleting {self.model.__name__} {entity_id}: {e}")
            raise RepositoryError(f"Failed to delete {self.model.__name__}") from e


# BaseRepository Method Summary
# | Method Name                   | Returns                      | Notes                                                  |
# | ----------------------------- | ---------------------------- | ------------------------------------------------------ |
# | `create(**kwargs)`            | Created model instance       | Validates fields, flushes + refreshes, never commits   |
# | `get_by_id(entity_id)`        | Model instance or `None`     |                                                        |
# | `get_by_id_or_raise(id)`      | Model instance               | Raises `NotFoundError`                                 |
# | `find_by_field(field, value)` | Model instance or `None`     | Raises `InvalidFieldError` for unknown fields          |
# | `exists(entity_id)`           | `True` / `False`             | Selects only the id column                             |
# | `count(**filters)`            | Integer count                | Equality filters only                                  |
# | `delete(entity_id)`           | `True` / `False`             | Uses `rowcount`                                        |
