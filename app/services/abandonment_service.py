# app/services/abandonment_service.py
import logging
from datetime import datetime, timedelta, timezone

from sqlmodel import Session

from app.schemas.cart import AbandonedCartRead, AbandonmentSweepResult
from app.services.cart_service import CartService
from app.services.price_formatter import format_price


class CartAbandonmentService:
    """
    Detects carts nobody has touched for a while.

    A cart is abandoned when it is still `active` and its `updated_at` is
    older than the idle window. Abandoned carts keep their items; the owner's
    next add starts a fresh active cart.
    """

    def __init__(
        self,
        cart_service: CartService,
        idle_minutes: int = 60,
        logger: logging.Logger | None = None,
    ):
        self.cart_service = cart_service
        self.idle_minutes = idle_minutes
        self.log = logger or logging.getLogger(__name__)

    def cutoff(self, now: datetime | None = None) -> datetime:
        now = now or datetime.now(timezone.utc)
        return now - timedelta(minutes=self.idle_minutes)

    def mark_abandoned(
        self,
        session: Session,
        now: datetime | None = None,
    ) -> AbandonmentSweepResult:
        cutoff = self.cutoff(now)
        count = self.cart_service.cart_repo.mark_stale_abandoned(session, cutoff)
        if count:
            self.log.info("Marked %s cart(s) abandoned (idle since before %s)", count, cutoff)
        return AbandonmentSweepResult(abandoned_count=count, cutoff=cutoff)

    def detect_abandoned(self, session: Session, limit: int = 100) -> list[AbandonedCartRead]:
        """
        Abandoned carts with their current value, oldest activity first.
        """
        carts = self.cart_service.cart_repo.list_by_status(session, "abandoned", limit=limit)

        found: list[AbandonedCartRead] = []
        for cart in carts:
            snapshot = self.cart_service.build_snapshot(session, cart)
            totals = self.cart_service.totals.calculate(snapshot)
            found.append(
                AbandonedCartRead(
                    cart_id=cart.id,
                    user_id=cart.user_id,
                    session_id=cart.session_id,
                    item_count=snapshot.total_items,
                    cart_value_cents=totals.total_cents,
                    cart_value=format_price(totals.total_cents),
                    last_activity=cart.updated_at,
                )
            )
        return found
