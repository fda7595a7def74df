# billing_api/balances.py
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .db import get_session
from .deps import get_profile
from .ledger import deposit_funds
from .models import DepositIn, SuccessOut
from .tables import Profile

router = APIRouter(prefix="/balances", tags=["balances"])


@router.post("/deposit/{user_id}", response_model=SuccessOut)
def deposit(
    user_id: int,
    payload: DepositIn,
    profile: Optional[Profile] = Depends(get_profile),
    session: Session = Depends(get_session),
):
    deposit_funds(session, user_id, payload.deposit, profile)
    return {"success": "Deposit Successfully", "status": 200}
