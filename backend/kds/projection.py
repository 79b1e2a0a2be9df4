"""
Kitchen display projection.

A KitchenOrder is built from a persisted Order on every read and thrown away
after rendering. Item statuses only live here; the one thing the kitchen
writes back is the bump, which goes through OrderService.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class KitchenOrderStatus(str, Enum):
    NEW = "NEW"
    IN_PROGRESS = "IN_PROGRESS"
    READY = "READY"
    COMPLETED = "COMPLETED"


class KitchenItemStatus(str, Enum):
    PENDING = "PENDING"
    PREPARING = "PREPARING"
    READY = "READY"


class KitchenPriority(str, Enum):
    NORMAL = "NORMAL"
    RUSH = "RUSH"
    VIP = "VIP"


# Operator toggles walk this cycle: PENDING -> PREPARING -> READY -> PENDING
ITEM_STATUS_CYCLE = {
    KitchenItemStatus.PENDING: KitchenItemStatus.PREPARING,
    KitchenItemStatus.PREPARING: KitchenItemStatus.READY,
    KitchenItemStatus.READY: KitchenItemStatus.PENDING,
}

# Persisted order status -> kitchen vocabulary. CANCELLED has no kitchen view.
ORDER_STATUS_MAP = {
    "PENDING": KitchenOrderStatus.NEW,
    "PREPARING": KitchenOrderStatus.IN_PROGRESS,
    "READY": KitchenOrderStatus.READY,
    "COMPLETED": KitchenOrderStatus.COMPLETED,
}

# Item status every item starts with, given the persisted order status
SEED_ITEM_STATUS = {
    "PENDING": KitchenItemStatus.PENDING,
    "PREPARING": KitchenItemStatus.PREPARING,
    "READY": KitchenItemStatus.READY,
    "COMPLETED": KitchenItemStatus.READY,
}

PRIORITY_RANK = {
    KitchenPriority.RUSH: 0,
    KitchenPriority.VIP: 1,
}


@dataclass(frozen=True)
class KitchenOrderItem:
    id: int
    product_id: int
    product_name: str
    quantity: int
    status: KitchenItemStatus = KitchenItemStatus.PENDING


@dataclass(frozen=True)
class KitchenOrder:
    id: str
    order_number: str
    status: KitchenOrderStatus
    created_at: datetime
    items: Tuple[KitchenOrderItem, ...] = field(default_factory=tuple)
    priority: KitchenPriority = KitchenPriority.NORMAL
    table_number: str = ""
    customer_name: str = ""
    notes: str = ""


def next_item_status(status) -> KitchenItemStatus:
    return ITEM_STATUS_CYCLE[KitchenItemStatus(status)]


def derive_order_status(current_status, items: Iterable[KitchenOrderItem]) -> KitchenOrderStatus:
    """
    All items READY makes the order READY. A NEW order with any item off
    PENDING becomes IN_PROGRESS. Anything else keeps ``current_status``.
    """
    current_status = KitchenOrderStatus(current_status)
    statuses = [KitchenItemStatus(item.status) for item in items]

    if statuses and all(status == KitchenItemStatus.READY for status in statuses):
        return KitchenOrderStatus.READY

    if current_status == KitchenOrderStatus.NEW and any(
        status != KitchenItemStatus.PENDING for status in statuses
    ):
        return KitchenOrderStatus.IN_PROGRESS

    return current_status


def toggle_item(kitchen_order: KitchenOrder, item_id) -> KitchenOrder:
    """
    Advance one item to its next status and re-derive the order status.
    Returns a new KitchenOrder; the argument is left untouched.
    """
    found = False
    items = []
    for item in kitchen_order.items:
        if item.id == item_id:
            found = True
            item = replace(item, status=next_item_status(item.status))
        items.append(item)

    if not found:
        raise KeyError(item_id)

    items = tuple(items)
    return replace(
        kitchen_order,
        items=items,
        status=derive_order_status(kitchen_order.status, items),
    )


def _display_key(kitchen_order: KitchenOrder):
    return (PRIORITY_RANK.get(KitchenPriority(kitchen_order.priority), 2), kitchen_order.created_at)


def sort_for_display(kitchen_orders: Iterable[KitchenOrder]) -> List[KitchenOrder]:
    """RUSH first, then VIP, then the rest; oldest first within each. Stable."""
    return sorted(kitchen_orders, key=_display_key)


def group_by_status(kitchen_orders: Iterable[KitchenOrder]) -> Dict[str, List[KitchenOrder]]:
    board = {status.value: [] for status in KitchenOrderStatus}
    for kitchen_order in kitchen_orders:
        board[KitchenOrderStatus(kitchen_order.status).value].append(kitchen_order)
    return {status: sort_for_display(orders) for status, orders in board.items()}


def project_order(order, priority=KitchenPriority.NORMAL) -> Optional[KitchenOrder]:
    """
    Build the kitchen view of a persisted order. Cancelled orders have none
    and return None.
    """
    if order.status not in ORDER_STATUS_MAP:
        logger.debug(f"Order {order.order_number} is {order.status}, not projected")
        return None

    item_status = SEED_ITEM_STATUS[order.status]
    items = tuple(
        KitchenOrderItem(
            id=item.id,
            product_id=item.product_id,
            product_name=item.product.name,
            quantity=item.quantity,
            status=item_status,
        )
        for item in order.items.all()
    )

    return KitchenOrder(
        id=str(order.pk),
        order_number=order.order_number,
        status=ORDER_STATUS_MAP[order.status],
        created_at=order.created_at,
        items=items,
        priority=KitchenPriority(priority or KitchenPriority.NORMAL),
        table_number=order.table_number,
        customer_name=order.customer_name,
        notes=order.notes,
    )
