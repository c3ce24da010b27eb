"""
Persistent state for a playground session.

- Key-value slots hold the JSON-encoded Bundle snapshot, key pair and issuer
- Exchange records keep a history of links produced by successful submissions
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, BigInteger, Boolean, Column, DateTime, Index, String, Text

from bind_playground.models.database import Base


# ---------------------------------------------------------------------------
# State slot – one JSON value per well-known key
# ---------------------------------------------------------------------------
class StateSlot(Base):
    __tablename__ = "state_slots"

    key = Column(String(64), primary_key=True, comment="bundle | keys | issuer")
    value = Column(JSON, nullable=True)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


# ---------------------------------------------------------------------------
# Exchange record – what the Exchange service handed back
# ---------------------------------------------------------------------------
class ExchangeRecord(Base):
    __tablename__ = "exchange_records"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    url = Column(Text, nullable=False, comment="Retrieval URL on the exchange service")
    exp = Column(BigInteger, nullable=False, comment="Expiry, epoch milliseconds")
    flag = Column(String(32), nullable=False)
    trusted = Column(Boolean, default=False, nullable=False)
    iss = Column(Text, nullable=True)
    kid = Column(String(128), nullable=True)
    label = Column(Text, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    __table_args__ = (Index("ix_exchange_created_at", "created_at"),)
