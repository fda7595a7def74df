# billing_api/admin.py
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from dateutil import parser as date_parser
from fastapi import APIRouter, Depends, Query
from sqlalchemy import Boolean, DateTime, Integer, String, bindparam, text
from sqlalchemy.orm import Session

from .db import get_session
from .errors import InvalidInput
from .models import BestClient, BestProfession
from .tables import MONEY

router = APIRouter(prefix="/admin", tags=["admin"])

DEFAULT_CLIENTS_LIMIT = 2

_PAID_IN_RANGE = (
    'FROM "Jobs" '
    'INNER JOIN "Contracts" ON "Jobs"."ContractId" = "Contracts".id '
    'INNER JOIN "Profiles" ON "Contracts"."ClientId" = "Profiles".id '
    'WHERE "Jobs".paid = :paid '
    'AND "Jobs"."paymentDate" >= :start '
    'AND "Jobs"."paymentDate" < :end '
)

_RANGE_PARAMS = (
    bindparam("paid", True, type_=Boolean),
    bindparam("start", type_=DateTime),
    bindparam("end", type_=DateTime),
)

# grouped by the client's profession, which is what this report has always returned
_BEST_PROFESSION_SQL = (
    text(
        'SELECT SUM("Jobs".price) AS total, "Profiles".profession AS profession '
        + _PAID_IN_RANGE
        + 'GROUP BY "Profiles".profession '
        "ORDER BY total DESC, profession "
        "LIMIT 1"
    )
    .bindparams(*_RANGE_PARAMS)
    .columns(total=MONEY, profession=String)
)

_BEST_CLIENTS_SQL = (
    text(
        'SELECT SUM("Jobs".price) AS total, "Profiles".id AS id, '
        '"Profiles"."firstName" || \' \' || "Profiles"."lastName" AS name '
        + _PAID_IN_RANGE
        + 'GROUP BY "Profiles".id, "Profiles"."firstName", "Profiles"."lastName" '
        'ORDER BY total DESC, "Profiles".id '
        "LIMIT :limit"
    )
    .bindparams(*_RANGE_PARAMS, bindparam("limit", type_=Integer))
    .columns(total=MONEY, id=Integer, name=String)
)


def _parse_date(value: Optional[str]) -> datetime:
    """Parse a report bound as ISO-8601 or month-first text (``08/15/2020``).

    Offsets are converted to naive UTC to match the stored payment dates.
    """
    if not value or not value.strip():
        raise InvalidInput("Please inform Start and End Date.")
    try:
        parsed = date_parser.parse(value.strip())
    except (ValueError, OverflowError):
        raise InvalidInput("Please inform Start and End Date.")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_report_range(start: Optional[str], end: Optional[str]) -> Tuple[datetime, datetime]:
    """Return ``(start, end_exclusive)``; the end date itself is included in the range."""
    return _parse_date(start), _parse_date(end) + timedelta(days=1)


def parse_limit(raw: Optional[str]) -> int:
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_CLIENTS_LIMIT
    return limit if limit > 0 else DEFAULT_CLIENTS_LIMIT


def best_profession(
    session: Session, start: datetime, end: datetime
) -> Optional[Dict[str, Any]]:
    row = session.execute(_BEST_PROFESSION_SQL, {"start": start, "end": end}).mappings().first()
    return dict(row) if row else None


def best_clients(
    session: Session, start: datetime, end: datetime, limit: int = DEFAULT_CLIENTS_LIMIT
) -> List[Dict[str, Any]]:
    rows = session.execute(_BEST_CLIENTS_SQL, {"start": start, "end": end, "limit": limit})
    return [dict(r) for r in rows.mappings().all()]


@router.get("/best-profession", response_model=Optional[BestProfession])
def best_profession_route(
    start: Optional[str] = Query(default=None),
    end: Optional[str] = Query(default=None),
    session: Session = Depends(get_session),
):
    start_at, end_before = parse_report_range(start, end)
    return best_profession(session, start_at, end_before)


@router.get("/best-clients", response_model=List[BestClient])
def best_clients_route(
    start: Optional[str] = Query(default=None),
    end: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    session: Session = Depends(get_session),
):
    start_at, end_before = parse_report_range(start, end)
    return best_clients(session, start_at, end_before, parse_limit(limit))
