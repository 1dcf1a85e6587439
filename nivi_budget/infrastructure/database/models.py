"""SQLAlchemy ORM models for the per-user finance document store"""

from sqlalchemy import Column, DateTime, JSON, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class FinanceDocument(Base):
    """Whole finance state of one user, stored verbatim as JSON"""

    __tablename__ = "finance_document"

    user_id = Column(Text, primary_key=True)
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
