# billing_api/contracts.py
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from .db import get_session
from .deps import get_profile
from .errors import NotFound
from .models import ApiContract
from .tables import Contract, Profile

router = APIRouter(prefix="/contracts", tags=["contracts"])


def party_filter(profile: Profile):
    """WHERE clause matching contracts the profile is a party to."""
    if profile.type == "client":
        return Contract.client_id == profile.id
    if profile.type == "contractor":
        return Contract.contractor_id == profile.id
    return or_(Contract.client_id == profile.id, Contract.contractor_id == profile.id)


def get_contract(session: Session, contract_id: int, profile: Optional[Profile]) -> Contract:
    if profile is None:
        raise NotFound("Profile not found")
    contract = session.execute(
        select(Contract).where(Contract.id == contract_id, party_filter(profile))
    ).scalar_one_or_none()
    if contract is None:
        raise NotFound(f"Contract {contract_id} not found")
    return contract


def list_contracts(session: Session, profile: Optional[Profile]) -> List[Contract]:
    if profile is None:
        return []
    stmt = (
        select(Contract)
        .where(party_filter(profile), Contract.status != "terminated")
        .order_by(Contract.id)
    )
    return list(session.execute(stmt).scalars())


@router.get("", response_model=List[ApiContract])
def list_contracts_route(
    profile: Optional[Profile] = Depends(get_profile),
    session: Session = Depends(get_session),
):
    return list_contracts(session, profile)


@router.get("/{contract_id}", response_model=ApiContract)
def get_contract_route(
    contract_id: int,
    profile: Optional[Profile] = Depends(get_profile),
    session: Session = Depends(get_session),
):
    return get_contract(session, contract_id, profile)
