"""Classes (e.g. X RPL 1, XI TKJ 2). Model named SchoolClass to avoid Python 'class' keyword."""
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Uuid

from assignment_hub.db.session import Base


class SchoolClass(Base):
    """Class master row; matrix rows are built from the active classes."""

    __tablename__ = "classes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(50), nullable=False, unique=True)
    grade_level = Column(Integer, nullable=True)
    academic_year = Column(String(20), nullable=True)
    display_order = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
