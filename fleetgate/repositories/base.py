"""Base repositories with shared lookup and error-translation patterns.

Eliminates duplicated __init__ and get logic across repositories.
Accounts are looked up by a single ID (BaseRepository); everything else
is scoped to an account and looked up by ``(account_id, entity_id)``
(AccountScopedRepository).

All database access goes through ``_storage()`` so driver failures surface
as StorageError instead of leaking SQLAlchemy exceptions to callers.
"""

import logging
from contextlib import contextmanager
from typing import TypeVar, Generic, Iterator, Optional, Type

import sqlalchemy.exc
from sqlalchemy.orm import Session, Query

from ..database import Base
from ..exceptions import NotFoundError, StorageError

ModelT = TypeVar("ModelT", bound=Base)

logger = logging.getLogger(__name__)


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Translate driver errors raised inside the block into StorageError."""
    try:
        yield
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.error("Storage failure during %s: %s", operation, e)
        raise StorageError(f"Storage failure during {operation}", original_error=e) from e


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:     The SQLAlchemy model (e.g., Device)
        id_column:       Name of the key column (e.g., "device_id")
        not_found_error: Exception class to raise from the strict getters
    """

    model_class: Type[ModelT]
    id_column: str = "id"
    not_found_error: Type[NotFoundError]

    def __init__(self, db: Session):
        self.db = db

    def _storage(self, operation: str):
        return storage_errors(operation)

    def get_by_id_optional(self, entity_id: str) -> Optional[ModelT]:
        """Get entity by primary key, or None if not found."""
        col = getattr(self.model_class, self.id_column)
        with self._storage(f"{self.model_class.__tablename__} lookup"):
            return self.db.query(self.model_class).filter(col == entity_id).first()

    def get_by_id(self, entity_id: str) -> ModelT:
        """Get entity by primary key. Raises not_found_error if missing."""
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity


class AccountScopedRepository(BaseRepository[ModelT]):
    """Repository for records keyed by ``(account_id, <id_column>)``."""

    def _base_query(self, account_id: str) -> Query:
        return self.db.query(self.model_class).filter(self.model_class.account_id == account_id)

    def get_optional(self, account_id: str, entity_id: str) -> Optional[ModelT]:
        """Get entity within an account, or None if not found."""
        col = getattr(self.model_class, self.id_column)
        with self._storage(f"{self.model_class.__tablename__} lookup"):
            return self._base_query(account_id).filter(col == entity_id).first()

    def get(self, account_id: str, entity_id: str) -> ModelT:
        """Get entity within an account. Raises not_found_error if missing."""
        entity = self.get_optional(account_id, entity_id)
        if entity is None:
            raise self.not_found_error(account_id, entity_id)
        return entity

    def exists(self, account_id: str, entity_id: str) -> bool:
        if not account_id or not entity_id:
            return False
        col = getattr(self.model_class, self.id_column)
        with self._storage(f"{self.model_class.__tablename__} exists"):
            return bool(self.db.query(
                self._base_query(account_id).filter(col == entity_id).exists()
            ).scalar())
