"""Document: one record of the hierarchical fee tree (students/<id>, transactions/<id>, config/fees, ...)."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String

from app.db.session import Base


class Document(Base):
    """A two-segment tree path and the JSON subtree stored under it.

    `version` is bumped on every write; writers compare-and-swap on it.
    """

    __tablename__ = "documents"

    path = Column(String(255), primary_key=True)
    collection = Column(String(100), nullable=False, index=True)
    data = Column(JSON, nullable=True)
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
