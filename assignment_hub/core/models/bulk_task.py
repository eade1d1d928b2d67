"""
Server-side record of one batch of assignment actions. Status moves
PENDING -> PROCESSING -> SUCCESS | PARTIAL_SUCCESS | FAILED.
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String, Uuid

from assignment_hub.db.session import Base


class BulkTask(Base):
    __tablename__ = "bulk_tasks"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    status = Column(String(30), nullable=False, default="PENDING")
    total_count = Column(Integer, nullable=False, default=0)
    processed_count = Column(Integer, nullable=False, default=0)
    success_count = Column(Integer, nullable=False, default=0)
    failed_count = Column(Integer, nullable=False, default=0)
    errors = Column(JSON, nullable=False, default=list)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    finished_at = Column(DateTime(timezone=True), nullable=True)
