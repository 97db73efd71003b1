"""ORM models for users and their messages."""

import uuid

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.base import BaseModel, PrimaryKeyType

UID_LENGTH = 36


def generate_uid() -> str:
    """Generate the external identifier for a new row."""
    return str(uuid.uuid4())


class User(BaseModel):
    """A user that owns messages.

    The message API only ever reads the primary key. Granted scopes travel on
    the caller's access token, not on this row.
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    messages: Mapped[list["Message"]] = relationship(
        back_populates="user",
        passive_deletes=True,
        lazy="raise",
    )


class Message(BaseModel):
    """A message owned by exactly one user.

    ``uid`` is the identifier exposed to clients; it and ``user_id`` never
    change after creation.
    """

    __tablename__ = "messages"

    uid: Mapped[str] = mapped_column(
        String(UID_LENGTH),
        nullable=False,
        unique=True,
        index=True,
        default=generate_uid,
        doc="External identifier (UUID4)",
    )
    user_id: Mapped[int] = mapped_column(
        PrimaryKeyType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    user: Mapped[User] = relationship(back_populates="messages", lazy="raise")

    def __repr__(self) -> str:
        """Return a string representation including the external id."""
        return f"<Message(id={self.id}, uid={self.uid}, user_id={self.user_id})>"
