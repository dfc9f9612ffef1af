"""SQLAlchemy ORM models for live negotiation sessions"""

from sqlalchemy import Column, BigInteger, Boolean, DateTime, Integer, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class NegotiationSessionRecord(Base):
    """State of one live negotiation; removed when the session ends"""

    __tablename__ = "negotiation_session"

    id = Column(Text, primary_key=True)
    debt_cents = Column(BigInteger, nullable=False)
    phase = Column(Text, nullable=False, default="initial")
    hardship_status = Column(Text, nullable=False, default="unset")
    income_monthly_cents = Column(BigInteger, nullable=True)
    income_source_text = Column(Text, nullable=True)
    pending_income_cents = Column(BigInteger, nullable=True)
    offered_term = Column(Integer, nullable=True)
    requested_term = Column(Integer, nullable=True)
    negotiation_turns = Column(Integer, nullable=False, default=0)
    documentation_requested = Column(Boolean, nullable=False, default=False)
    agreed_term = Column(Integer, nullable=True)
    agreed_base_cents = Column(BigInteger, nullable=True)
    agreed_final_cents = Column(BigInteger, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
