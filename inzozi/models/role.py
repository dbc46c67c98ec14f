from sqlalchemy import Column, ForeignKey, DateTime, Enum as SQLEnum, Uuid, UniqueConstraint, text
from sqlalchemy.orm import relationship
import uuid
from inzozi.db.base import Base
import enum


class AppRole(str, enum.Enum):
    """Application roles."""
    ADMIN = "admin"
    USER = "user"


class UserRole(Base):
    """Role assignment created at signup."""
    __tablename__ = "user_role"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_role_user_id_role"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("user.id"), nullable=False, index=True)
    role = Column(SQLEnum(AppRole, native_enum=False, values_callable=lambda obj: [e.value for e in obj]), default=AppRole.USER, nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"))

    # Relationships
    user = relationship("User", back_populates="user_roles")
