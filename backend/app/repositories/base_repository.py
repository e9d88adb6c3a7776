# backend/app/repositories/base_repository.py
"""
Base Repository Pattern for the SportSpot booking core

Provides the foundation for all repository classes:
- Record-level create/read/update/delete on one model
- Type safety with generics
- Storage errors wrapped in ``RepositoryException``

Repositories only flush. Commit and rollback belong to the service that owns
the transaction.
"""

from contextlib import contextmanager
import logging
from typing import Any, Generic, Iterator, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from app.database import get_dialect_name

from ..core.exceptions import RepositoryException

# Type variable for generic model support
T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Generic data access for one SQLAlchemy model.

    Attributes:
        db: SQLAlchemy session (owned by the calling service)
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @property
    def dialect_name(self) -> str:
        return get_dialect_name(self.db)

    @contextmanager
    def _storage_errors(self, action: str) -> Iterator[None]:
        """Translate SQLAlchemy failures raised inside the block."""
        try:
            yield
        except IntegrityError as e:
            self.logger.error(f"Integrity error while trying to {action} {self.model.__name__}: {e}")
            raise RepositoryException(f"Integrity constraint violated: {e}") from e
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to {action} {self.model.__name__}: {e}")
            raise RepositoryException(f"Failed to {action} {self.model.__name__}: {e}") from e

    def get_by_id(self, id: Any) -> Optional[T]:
        """Retrieve an entity by its primary key."""
        with self._storage_errors("get"):
            return self.db.get(self.model, id)

    def create(self, **kwargs: Any) -> T:
        """
        Add a new entity and flush so generated ids are available.

        Note: Does NOT commit - transaction management is handled by service layer.
        """
        with self._storage_errors("create"):
            entity = self.model(**kwargs)
            self.db.add(entity)
            self.db.flush()
            return entity

    def update(self, entity: T, **changes: Any) -> T:
        """Set only the given attributes on ``entity`` and flush."""
        unknown = [name for name in changes if not hasattr(entity, name)]
        if unknown:
            raise RepositoryException(f"{self.model.__name__} has no attribute(s) {unknown}")
        with self._storage_errors("update"):
            for name, value in changes.items():
                setattr(entity, name, value)
            self.db.flush()
            return entity

    def delete(self, entity: T) -> None:
        with self._storage_errors("delete"):
            self.db.delete(entity)
            self.db.flush()

    def exists(self, **criteria: Any) -> bool:
        return self.find_one_by(**criteria) is not None

    def count(self, **criteria: Any) -> int:
        with self._storage_errors("count"):
            return self._build_query().filter_by(**criteria).count()

    def find_by(self, **criteria: Any) -> List[T]:
        """Entities matching exact-match criteria."""
        return self._execute_query(self._build_query().filter_by(**criteria))

    def find_one_by(self, **criteria: Any) -> Optional[T]:
        return self._execute_first(self._build_query().filter_by(**criteria))

    # Protected helpers for subclasses

    def _build_query(self) -> Query:
        return self.db.query(self.model)

    def _execute_query(self, query: Query) -> List[T]:
        with self._storage_errors("query"):
            return query.all()

    def _execute_first(self, query: Query) -> Optional[T]:
        with self._storage_errors("query"):
            return query.first()
