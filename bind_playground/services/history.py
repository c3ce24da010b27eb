"""History of exchanges created from this playground."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from bind_playground.models.state import ExchangeRecord
from bind_playground.schemas.exchange import ExchangeResponse

logger = logging.getLogger(__name__)


def record_exchange(
    db: Session,
    *,
    response: ExchangeResponse,
    kid: str | None,
    label: str | None = None,
) -> ExchangeRecord:
    """Persist what the exchange service returned. The content key is never stored."""
    record = ExchangeRecord(
        url=response.url,
        exp=response.exp,
        flag=response.flag,
        trusted=response.trusted,
        iss=response.iss,
        kid=kid,
        label=label,
    )
    db.add(record)
    db.commit()
    logger.info("EXCHANGE: %s flag=%s trusted=%s", record.url, record.flag, record.trusted)
    return record


def list_exchanges(db: Session, limit: int = 50) -> list[ExchangeRecord]:
    stmt = select(ExchangeRecord).order_by(ExchangeRecord.created_at.desc()).limit(limit)
    return list(db.scalars(stmt))
