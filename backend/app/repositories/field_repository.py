# backend/app/repositories/field_repository.py
"""Read access to sport fields and owner profiles."""

from decimal import Decimal
import logging
from typing import Optional, cast

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.field import FieldOwner, SportField
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class FieldRepository(BaseRepository[SportField]):
    def __init__(self, db: Session):
        super().__init__(db, SportField)

    def get_price_per_hour(self, field_id: str) -> Optional[Decimal]:
        """Hourly rate of a field, or None when the field does not exist."""
        try:
            result = self.db.execute(
                select(SportField.price_per_hour).where(SportField.id == field_id)
            ).scalar_one_or_none()
            return cast(Optional[Decimal], result)
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading price for field {field_id}: {str(e)}")
            raise RepositoryException(f"Failed to read field price: {str(e)}")


class FieldOwnerRepository(BaseRepository[FieldOwner]):
    def __init__(self, db: Session):
        super().__init__(db, FieldOwner)

    def get_by_user_id(self, user_id: str) -> Optional[FieldOwner]:
        return self.find_one_by(user_id=user_id)
