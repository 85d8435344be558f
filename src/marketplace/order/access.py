"""Order lookup and requester checks shared by order and payment operations."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.exceptions import OrderNotFound, UnauthorizedAccess
from marketplace.order.order import Order

ADMIN_ROLES = {"ADMIN", "ROLE_ADMIN"}


def is_admin(role: str | None) -> bool:
    return (role or "").upper() in ADMIN_ROLES


def find_order(order_id: str) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise OrderNotFound({"order_id": [f"Order {order_id} not found"]}) from exc


def ensure_owner_or_admin(order: Order, requester_id: str | None, requester_role: str | None) -> None:
    if is_admin(requester_role) or order.is_owned_by(requester_id):
        return
    raise UnauthorizedAccess({"requester_id": [f"Not allowed to access order {order.id}"]})


def ensure_seller_or_admin(order: Order, requester_id: str | None, requester_role: str | None) -> None:
    if is_admin(requester_role):
        return
    if requester_id is not None and str(order.seller_id) == str(requester_id):
        return
    raise UnauthorizedAccess({"requester_id": [f"Only the seller or an admin may update order {order.id}"]})
