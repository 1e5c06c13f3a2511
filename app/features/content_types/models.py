"""
Content type model.

A content type is identified by its machine name ("article", "page") and
carries the privacy policy applied when items of that type are saved.
"""
from sqlalchemy import String, Text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database.base import Base, TimestampMixin
from app.features.private.policy import PrivacyPolicy, DEFAULT_PRIVACY_POLICY


class ContentType(Base, TimestampMixin):
    __tablename__ = "content_types"

    type: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    privacy_policy: Mapped[PrivacyPolicy] = mapped_column(
        SQLEnum(PrivacyPolicy, values_callable=lambda e: [member.value for member in e]),
        default=DEFAULT_PRIVACY_POLICY,
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<ContentType(type={self.type!r}, privacy_policy={self.privacy_policy.value})>"
