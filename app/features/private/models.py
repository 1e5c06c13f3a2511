"""
Persisted state of the private feature.
"""
from sqlalchemy import Boolean
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database.base import Base, TimestampMixin


STATE_ROW_ID = 1


class PrivateModuleState(Base, TimestampMixin):
    """
    Single-row table recording whether private grants are emitted.

    While enabled is False every item evaluates as if teardown were in
    progress, so rebuilding node access removes all private restrictions.
    """
    __tablename__ = "private_module_state"

    id: Mapped[int] = mapped_column(primary_key=True, default=STATE_ROW_ID)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<PrivateModuleState(enabled={self.enabled})>"
