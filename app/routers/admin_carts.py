# app/routers/admin_carts.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.auth import require_admin
from app.core.config import get_settings
from app.database import get_session
from app.models.user import User
from app.schemas.cart import AbandonedCartRead, AbandonmentSweepResult
from app.services.abandonment_service import CartAbandonmentService
from app.services.cart_service import CartService

router = APIRouter(prefix="/admin/carts", tags=["Admin Carts"])

settings = get_settings()
service = CartAbandonmentService(
    CartService.from_settings(settings),
    idle_minutes=settings.CART_ABANDONMENT_MINUTES,
)


@router.post("/abandonment-sweep", response_model=AbandonmentSweepResult)
def run_abandonment_sweep(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    """
    Mark idle active carts as abandoned.

    Auth:
      - role='admin' only.
    """
    return service.mark_abandoned(session)


@router.get("/abandoned", response_model=list[AbandonedCartRead])
def list_abandoned_carts(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
    limit: int = 100,
):
    """
    Abandoned carts with item count and current value.
    """
    return service.detect_abandoned(session, limit=limit)
