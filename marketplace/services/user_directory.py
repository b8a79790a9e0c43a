from typing import Mapping

from pydantic import ValidationError as SchemaValidationError

from marketplace.core.exceptions import NotFoundError, ValidationError
from marketplace.crud import user as crud_user
from marketplace.schemas.user import ProfileUpdate, UserOut, UserUpsert
from marketplace.services.base import BaseStore

# Token claims copied onto a user row the first time they sign in
IDENTITY_CLAIMS = ("email", "first_name", "last_name", "profile_image_url")


class UserDirectory(BaseStore):
    """User identity and profile records. Users are never deleted."""

    @BaseStore.log_performance
    def get_user(self, user_id: str) -> UserOut:
        user = crud_user.get_user(self.db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return UserOut.model_validate(user)

    @BaseStore.log_performance
    def upsert_user(self, data: UserUpsert) -> UserOut:
        values = data.model_dump(exclude={"id"}, exclude_unset=True)
        user = crud_user.upsert_user(self.db, data.id, values)
        return UserOut.model_validate(user)

    @BaseStore.log_performance
    def ensure_user(self, claims: Mapping) -> UserOut:
        """Return the signed-in user, creating the row on first sight."""
        user_id = claims["sub"]
        user = crud_user.get_user(self.db, user_id)
        if user is not None:
            return UserOut.model_validate(user)

        values = {key: claims[key] for key in IDENTITY_CLAIMS if claims.get(key) is not None}
        try:
            data = UserUpsert(id=user_id, **values)
        except SchemaValidationError as e:
            self.logger.warning(f"Rejected identity claims for user {user_id}: {e.error_count()} invalid field(s)")
            raise ValidationError("Token identity claims are invalid", code="invalid_identity") from e
        self.logger.info(f"Creating user {user_id} on first authentication")
        user = crud_user.upsert_user(self.db, user_id, data.model_dump(exclude={"id"}, exclude_unset=True))
        return UserOut.model_validate(user)

    @BaseStore.log_performance
    def update_profile(self, user_id: str, data: ProfileUpdate) -> UserOut:
        user = crud_user.get_user(self.db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        changes = data.model_dump(exclude_unset=True)
        if changes:
            user = crud_user.update_user(self.db, user, changes)
        return UserOut.model_validate(user)
