# billing_api/jobs.py
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import or_, select
from sqlalchemy.orm import Session, contains_eager

from .contracts import party_filter
from .db import get_session
from .deps import get_profile
from .ledger import pay_job
from .models import ApiJob, SuccessOut
from .tables import Contract, Job, Profile

router = APIRouter(prefix="/jobs", tags=["jobs"])


def list_unpaid_jobs(session: Session, profile: Optional[Profile]) -> List[Job]:
    """Unpaid jobs on the profile's active contracts, each with its contract loaded."""
    if profile is None:
        return []
    stmt = (
        select(Job)
        .join(Job.contract)
        .options(contains_eager(Job.contract))
        .where(
            party_filter(profile),
            Contract.status != "terminated",
            or_(Job.paid.is_(None), Job.paid.is_(False)),
        )
        .order_by(Job.id)
    )
    return list(session.execute(stmt).scalars())


@router.get("/unpaid", response_model=List[ApiJob])
def list_unpaid_jobs_route(
    profile: Optional[Profile] = Depends(get_profile),
    session: Session = Depends(get_session),
):
    return list_unpaid_jobs(session, profile)


@router.post("/{job_id}/pay", response_model=SuccessOut)
def pay_job_route(
    job_id: int,
    profile: Optional[Profile] = Depends(get_profile),
    session: Session = Depends(get_session),
):
    pay_job(session, job_id, profile)
    return {"success": "Job paid Successfully", "status": 200}
