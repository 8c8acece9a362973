"""Reconstruct checkout baskets from flat order rows.

Checkout writes one ``orders`` row per line item and no basket key, so the
fulfillment view re-associates rows by customer and time proximity. The
window is anchored on the first order of a group and never slides: an order
joins only if it is within the window of that anchor, however close it is
to the previous member. The result is presentation only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from .pricing import to_money

DEFAULT_WINDOW = timedelta(seconds=60)

APPROVED_PROOF_STATUSES = frozenset({"approved", "verified"})

TERMINAL_STATUSES = frozenset({"completed", "cancelled", "refunded"})

STATUS_TRANSITIONS = {
    "pending": frozenset({"processing", "cancelled", "refunded"}),
    "processing": frozenset({"completed", "cancelled", "refunded"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
    "refunded": frozenset(),
}


@dataclass(frozen=True)
class FulfillmentOrder:
    id: str
    user_id: str
    amount: Decimal
    status: str
    created_at: datetime
    payment_proof_status: Optional[str] = None
    product_id: Optional[str] = None
    product_title: Optional[str] = None
    payment_method: Optional[str] = None

    @classmethod
    def from_row(cls, row: Any) -> "FulfillmentOrder":
        return cls(
            id=row.id,
            user_id=row.user_id,
            amount=to_money(row.amount) or Decimal("0"),
            status=row.status,
            created_at=row.created_at,
            payment_proof_status=row.payment_proof_status,
            product_id=getattr(row, "product_id", None),
            product_title=getattr(row, "product_title", None),
            payment_method=getattr(row, "payment_method", None),
        )


@dataclass
class OrderGroup:
    key: str
    user_id: str
    earliest_timestamp: datetime
    orders: List[FulfillmentOrder] = field(default_factory=list)
    total_amount: Decimal = Decimal("0")

    def add(self, order: FulfillmentOrder) -> None:
        self.orders.append(order)
        self.total_amount += order.amount

    @property
    def order_ids(self) -> List[str]:
        return [o.id for o in self.orders]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "user_id": self.user_id,
            "earliest_timestamp": self.earliest_timestamp.isoformat(),
            "order_ids": self.order_ids,
            "total_amount": float(self.total_amount),
            "all_approved": all_approved(self),
            "all_completed": all_completed(self),
            "ready_to_send": group_ready_to_send(self),
            "needs_payment_verification": group_needs_payment_verification(self),
        }


def group_key(user_id: str, anchor: datetime) -> str:
    return f"{user_id}-{anchor.isoformat()}"


def group_orders(orders: Iterable[FulfillmentOrder], window: timedelta = DEFAULT_WINDOW) -> List[OrderGroup]:
    """Cluster ``orders`` into baskets, newest basket first.

    Orders are walked oldest first so each group is anchored on the first
    order of its checkout; ties on ``created_at`` are broken by id, which
    makes the result independent of input order.
    """
    groups: List[OrderGroup] = []
    for order in sorted(orders, key=lambda o: (o.created_at, o.id)):
        target = None
        for group in groups:
            if group.user_id == order.user_id and abs(order.created_at - group.earliest_timestamp) < window:
                target = group
                break
        if target is None:
            # anchor is fixed at creation, later members never move it
            target = OrderGroup(
                key=group_key(order.user_id, order.created_at),
                user_id=order.user_id,
                earliest_timestamp=order.created_at,
            )
            groups.append(target)
        target.add(order)

    for group in groups:
        group.orders.sort(key=lambda o: (o.created_at, o.id), reverse=True)
    groups.sort(key=lambda g: (g.earliest_timestamp, g.key), reverse=True)
    return groups


def is_payment_approved(order: FulfillmentOrder) -> bool:
    return order.payment_proof_status in APPROVED_PROOF_STATUSES


def ready_to_send(order: FulfillmentOrder) -> bool:
    return is_payment_approved(order) and order.status != "completed"


def needs_payment_verification(order: FulfillmentOrder) -> bool:
    return order.payment_proof_status in (None, "pending")


def all_approved(group: OrderGroup) -> bool:
    return bool(group.orders) and all(is_payment_approved(o) for o in group.orders)


def all_completed(group: OrderGroup) -> bool:
    return bool(group.orders) and all(o.status == "completed" for o in group.orders)


def group_ready_to_send(group: OrderGroup) -> bool:
    # credentials for a basket go out in one email, so every member must be approved
    return all_approved(group) and not all_completed(group)


def group_needs_payment_verification(group: OrderGroup) -> bool:
    return not all_approved(group)


def is_on_status_path(old: str, new: str) -> bool:
    """Whether ``old -> new`` follows pending -> processing -> completed or an exit to cancelled / refunded."""
    if old == new:
        return True
    return new in STATUS_TRANSITIONS.get(old, frozenset())
