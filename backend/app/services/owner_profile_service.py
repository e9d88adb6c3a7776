# backend/app/services/owner_profile_service.py
"""
Field owner profiles.

Creating the owner row used to be a side effect of a schema trigger on the
users table; callers that promote a user to field owner now call
``ensure_owner_profile`` explicitly before listing fields.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from ..core.exceptions import ValidationException
from ..models.field import FieldOwner
from ..repositories import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


def default_business_name(uname: Optional[str]) -> str:
    return f"Field Business - {uname or 'Owner'}"


class OwnerProfileService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.owner_repository = RepositoryFactory.create_field_owner_repository(db)

    @BaseService.measure_operation("ensure_owner_profile")
    def ensure_owner_profile(
        self,
        user_id: str,
        uname: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> Tuple[FieldOwner, bool]:
        """
        Return the user's owner profile, creating it on first call.

        Returns:
            ``(owner, created)``; an existing profile is returned untouched.
        """
        if not user_id:
            raise ValidationException("user_id is required")

        with self.transaction():
            existing = self.owner_repository.get_by_user_id(user_id)
            if existing is not None:
                return existing, False
            owner = self.owner_repository.create(
                user_id=user_id,
                business_name=default_business_name(uname),
                phone=phone,
                address=address,
            )

        self.logger.info(f"Created owner profile {owner.id} for user {user_id}")
        return owner, True
