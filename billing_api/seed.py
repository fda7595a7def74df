# billing_api/seed.py
"""
Load a demo dataset: four clients, four contractors, nine contracts and a
mix of paid and unpaid jobs.

Usage:
    python -m billing_api.seed [--database-url URL] [--drop]
"""
import argparse
import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from . import db
from .tables import Contract, Job, Profile

logger = logging.getLogger(__name__)

PROFILES = [
    (1, "Harry", "Potter", "Wizard", "1150", "client"),
    (2, "Mr", "Robot", "Hacker", "231.11", "client"),
    (3, "John", "Snow", "Knows nothing", "451.3", "client"),
    (4, "Ash", "Kethcum", "Pokemon master", "1.3", "client"),
    (5, "John", "Lenon", "Musician", "64", "contractor"),
    (6, "Linus", "Torvalds", "Programmer", "1214", "contractor"),
    (7, "Alan", "Turing", "Programmer", "22", "contractor"),
    (8, "Aragorn", "II Elessar Telcontarion", "Fighter", "314", "contractor"),
]

# (id, status, client, contractor)
CONTRACTS = [
    (1, "terminated", 1, 5),
    (2, "in_progress", 1, 6),
    (3, "in_progress", 2, 6),
    (4, "in_progress", 2, 7),
    (5, "new", 3, 8),
    (6, "in_progress", 3, 7),
    (7, "in_progress", 4, 7),
    (8, "in_progress", 4, 6),
    (9, "in_progress", 4, 8),
]

# (id, price, contract, payment date or None)
JOBS = [
    (1, "200", 1, None),
    (2, "201", 2, None),
    (3, "202", 3, None),
    (4, "200", 4, None),
    (5, "200", 7, None),
    (6, "2020", 7, datetime(2020, 8, 15, 19, 11, 26)),
    (7, "200", 2, datetime(2020, 8, 15, 19, 11, 26)),
    (8, "200", 3, datetime(2020, 8, 16, 19, 11, 26)),
    (9, "200", 1, datetime(2020, 8, 17, 19, 11, 26)),
    (10, "200", 5, datetime(2020, 8, 17, 19, 11, 26)),
    (11, "21", 1, datetime(2020, 8, 10, 19, 11, 26)),
    (12, "21", 2, datetime(2020, 8, 15, 19, 11, 26)),
    (13, "121", 3, datetime(2020, 8, 15, 19, 11, 26)),
    (14, "121", 3, datetime(2020, 8, 14, 23, 11, 26)),
]


def seed(session: Session) -> None:
    for pid, first, last, profession, balance, kind in PROFILES:
        session.add(
            Profile(
                id=pid,
                first_name=first,
                last_name=last,
                profession=profession,
                balance=Decimal(balance),
                type=kind,
            )
        )
    for cid, status, client_id, contractor_id in CONTRACTS:
        session.add(
            Contract(
                id=cid,
                terms="bla bla bla",
                status=status,
                client_id=client_id,
                contractor_id=contractor_id,
            )
        )
    for jid, price, contract_id, paid_at in JOBS:
        session.add(
            Job(
                id=jid,
                description="work",
                price=Decimal(price),
                contract_id=contract_id,
                paid=True if paid_at else None,
                payment_date=paid_at,
            )
        )
    session.commit()
    logger.info(
        f"Seeded {len(PROFILES)} profiles, {len(CONTRACTS)} contracts, {len(JOBS)} jobs"
    )


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Create tables and load demo billing data")
    parser.add_argument("--database-url", help="defaults to DATABASE_URL")
    parser.add_argument("--drop", action="store_true", help="drop existing tables first")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    db.configure_engine(args.database_url)
    db.init_db(drop=args.drop)
    session = db.new_session()
    try:
        seed(session)
    finally:
        session.close()
    db.dispose_engine()


if __name__ == "__main__":
    main()
