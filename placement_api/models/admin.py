"""Admin model."""

from sqlalchemy import Column, String

from placement_api.db.base import Base


class Admin(Base):
    """Placement-cell administrator.

    ``main-admin`` sees every branch; ``branch-admin`` is scoped to ``branch``.
    """

    __tablename__ = "admins"

    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(150), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="branch-admin")  # main-admin, branch-admin
    branch = Column(String(40), nullable=True)
    status = Column(String(20), nullable=False, default="active")  # active, inactive

    def __repr__(self):
        return f"<Admin {self.email} ({self.role})>"
