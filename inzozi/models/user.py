from sqlalchemy import Column, String, DateTime, Uuid, text
from sqlalchemy.orm import relationship
import uuid
from inzozi.db.base import Base


class User(Base):
    """Authentication identity. Its id is the member reference used by every other record."""
    __tablename__ = "user"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    member_profile = relationship("MemberProfile", back_populates="user", uselist=False)
    user_roles = relationship("UserRole", back_populates="user")
