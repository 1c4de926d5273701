"""Company model."""

from sqlalchemy import Column, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from placement_api.db.base import Base


class Company(Base):
    """Recruiting company."""

    __tablename__ = "companies"

    name = Column(String(255), unique=True, nullable=False, index=True)
    info = Column(JSONB, default=dict)  # {"location": "", "salary": "", "website": ""}

    # Relationships
    drives = relationship("Drive", back_populates="company")

    def __repr__(self):
        return f"<Company {self.name}>"
