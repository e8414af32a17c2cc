# app/models/user.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Shopper account, created the first time a signed-in shopper's token
    reaches the API.

    Only signed-in shoppers have a row. Guests shop under an opaque
    session token kept on their cart, and must sign in to check out.
    Credentials never reach this service.
    """

    __tablename__ = "users"

    # the token subject, so a shopper maps to one row across logins
    id: uuid.UUID = Field(primary_key=True, index=True)

    email: str = Field(unique=True, index=True)

    name: str = Field(max_length=50)

    # user | admin; admins run the abandonment sweep
    role: str = Field(default="user", index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
