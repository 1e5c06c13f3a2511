"""
Node access table.

One row per (item, realm, gid). A viewer may perform an operation on an item
when any of the item's rows has the matching grant flag and the viewer holds
(realm, gid).
"""
from sqlalchemy import String, Integer, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database.base import Base


class NodeAccess(Base):
    __tablename__ = "node_access"

    item_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("content_items.id", ondelete="CASCADE"),
        primary_key=True
    )
    realm: Mapped[str] = mapped_column(String(255), primary_key=True)
    gid: Mapped[int] = mapped_column(Integer, primary_key=True)

    grant_view: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    grant_update: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    grant_delete: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<NodeAccess(item_id={self.item_id}, realm={self.realm!r}, gid={self.gid}, "
            f"view={self.grant_view}, update={self.grant_update}, delete={self.grant_delete})>"
        )
