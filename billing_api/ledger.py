# billing_api/ledger.py
"""
Balance-moving operations: paying a job and depositing funds.

Both run as one database transaction. Every row that gets written is locked
(SELECT ... FOR UPDATE, or BEGIN IMMEDIATE on SQLite) before it is read for
validation, so two requests racing on the same job or profile serialize in
the database. Any rejection or storage error rolls the whole transaction
back; nothing is retried here.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional, Union

from sqlalchemy import Boolean, bindparam, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import get_settings
from .db import begin_write
from .errors import (
    AlreadyPaid,
    BillingError,
    DepositLimitExceeded,
    Forbidden,
    InsufficientFunds,
    NotFound,
    StorageFailure,
)
from .tables import MONEY, Contract, Job, Profile, utcnow

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

_UNPAID_TOTAL_SQL = (
    text(
        'SELECT SUM("Jobs".price) AS total FROM "Jobs" '
        'INNER JOIN "Contracts" ON "Jobs"."ContractId" = "Contracts".id '
        'WHERE ("Jobs".paid IS NULL OR "Jobs".paid = :unpaid) '
        'AND "Contracts"."ClientId" = :client_id'
    )
    .bindparams(bindparam("unpaid", False, type_=Boolean))
    .columns(total=MONEY)
)


def to_cents(value: Union[Decimal, int, float, str]) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def _lock_profiles(session: Session, *profile_ids: int) -> Dict[int, Optional[Profile]]:
    """Lock profile rows one at a time in ascending id order.

    Every ledger operation takes profile locks in this order, so two
    transactions touching the same pair of profiles cannot deadlock.
    """
    locked = {}
    for pid in sorted(set(profile_ids)):
        stmt = (
            select(Profile)
            .where(Profile.id == pid)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        locked[pid] = session.execute(stmt).scalar_one_or_none()
    return locked


def unpaid_total(session: Session, client_id: int) -> Optional[Decimal]:
    """Sum of prices of the client's unpaid jobs, None when there are none."""
    return session.execute(_UNPAID_TOTAL_SQL, {"client_id": client_id}).scalar_one()


def pay_job(session: Session, job_id: int, profile: Optional[Profile]) -> Job:
    if profile is None:
        raise NotFound("Profile not found")
    actor_id = profile.id

    try:
        begin_write(session)
        job = session.execute(
            select(Job)
            .where(Job.id == job_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if job is None:
            raise NotFound(f"Job {job_id} not found")

        contract = session.get(Contract, job.contract_id)
        locked = _lock_profiles(session, contract.client_id, contract.contractor_id)
        client = locked[contract.client_id]
        contractor = locked[contract.contractor_id]

        if actor_id != contract.client_id:
            raise Forbidden("You can only pay your own contracts.")
        if job.paid:
            raise AlreadyPaid("This job is already paid.")

        price = to_cents(job.price)
        if client.balance < price:
            raise InsufficientFunds("Job cannot be paid, insufficient funds.")

        client.balance = to_cents(client.balance - price)
        contractor.balance = to_cents(contractor.balance + price)
        job.paid = True
        job.payment_date = utcnow()
        session.commit()
    except BillingError as e:
        session.rollback()
        logger.warning(f"Payment of job {job_id} by profile {actor_id} rejected: {e.message}")
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Payment of job {job_id} failed in storage")
        raise StorageFailure("Payment could not be completed") from e

    logger.info(
        f"Job {job.id} paid: {price} moved from profile {client.id} to profile {contractor.id}"
    )
    return job


def deposit_funds(
    session: Session,
    target_id: int,
    amount: Decimal,
    profile: Optional[Profile],
    limit_ratio: Optional[Decimal] = None,
) -> Profile:
    """
    Move ``amount`` from the acting profile's balance to ``target_id``.

    The amount may not exceed ``limit_ratio`` (25% by default) of what the
    acting profile still owes on unpaid jobs. When the acting profile deposits
    to itself the debit and credit cancel and the balance is unchanged.
    """
    if profile is None:
        raise NotFound("Profile not found")
    ratio = limit_ratio if limit_ratio is not None else get_settings().deposit_limit_ratio
    amount = to_cents(amount)
    actor_id = profile.id

    try:
        begin_write(session)
        locked = _lock_profiles(session, target_id, actor_id)
        target = locked[target_id]
        if target is None:
            raise NotFound(f"Profile {target_id} not found")
        depositor = locked[actor_id]
        if depositor is None:
            raise NotFound("Profile not found")

        total = unpaid_total(session, depositor.id)
        if total is None or total < 0 or amount > total * ratio:
            raise DepositLimitExceeded(
                f"Deposit of {amount} exceeds the limit for unpaid jobs totalling {total or 0}"
            )

        if depositor.id == target.id:
            logger.info(f"Self-deposit of {amount} by profile {depositor.id}, balance unchanged")
        else:
            if depositor.balance < amount:
                raise InsufficientFunds("Insufficient funds to deposit")
            depositor.balance = to_cents(depositor.balance - amount)
            target.balance = to_cents(target.balance + amount)
        session.commit()
    except BillingError as e:
        session.rollback()
        logger.warning(f"Deposit to profile {target_id} by profile {actor_id} rejected: {e.message}")
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Deposit to profile {target_id} failed in storage")
        raise StorageFailure("Deposit could not be completed") from e

    logger.info(f"Deposit of {amount} from profile {depositor.id} to profile {target.id}")
    return target
