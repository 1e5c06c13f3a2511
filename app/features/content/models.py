"""
Content item model.
"""
from sqlalchemy import String, Text, Boolean, Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database.base import Base, TimestampMixin


class ContentItem(Base, TimestampMixin):
    """
    A piece of content owned by a user.

    is_private is the only field the private feature reads besides owner_id;
    whether a viewer can see the item is decided by its node_access rows.
    """
    __tablename__ = "content_items"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    type: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("content_types.type", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str | None] = mapped_column(Text, nullable=True)

    owner_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    is_private: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)

    owner: Mapped["User"] = relationship("User", lazy="selectin")  # type: ignore

    def __repr__(self) -> str:
        return f"<ContentItem(id={self.id}, type={self.type!r}, private={self.is_private})>"
