from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from homexrei.db.session import get_db
from homexrei.models.user import User
from homexrei.schemas.credits import CreditBalance, CreditLedgerItem
from homexrei.services.auth.jwt import get_current_user
from homexrei.services.credits.service import CreditLedgerService

router = APIRouter(prefix="/credits", tags=["credits"])


@router.get("/balance", response_model=CreditBalance)
def get_balance(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"user_id": user.id, "credits": float(CreditLedgerService(db).get_balance(user.id))}


@router.get("/history", response_model=list[CreditLedgerItem])
def get_history(
    limit: int = Query(50, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CreditLedgerService(db).history(user.id, limit=limit)
