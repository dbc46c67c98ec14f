from sqlalchemy import Column, String, ForeignKey, DateTime, Boolean, Uuid, text, func
from sqlalchemy.orm import relationship
import uuid
from inzozi.db.base import Base


class MemberProfile(Base):
    """Member profile linked 1:1 to user. ``is_approved`` gates platform access."""
    __tablename__ = "member_profile"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=False, unique=True, index=True)
    full_name = Column(String(200), nullable=False)
    phone = Column(String(20), nullable=True)
    is_approved = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="member_profile")
