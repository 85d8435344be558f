"""Manual order status updates by the order's seller or an admin."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.exceptions import InvalidStatusTransition
from marketplace.order.access import ensure_seller_or_admin, find_order
from marketplace.order.order import Order, OrderStatus
from marketplace.order.queries import materialize

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    new_status = String(required=True, max_length=50)
    requester_id = Identifier(required=True)
    requester_role = String(max_length=50)


@marketplace.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        order = find_order(command.order_id)
        ensure_seller_or_admin(order, command.requester_id, command.requester_role)

        try:
            target = OrderStatus(command.new_status.upper())
        except ValueError as exc:
            raise InvalidStatusTransition({"new_status": [f"Unknown order status: {command.new_status}"]}) from exc

        previous = order.status
        if order.update_status(target):
            current_domain.repository_for(Order).add(order)
            logger.info(
                "order_status_updated",
                order_id=str(order.id),
                previous_status=previous,
                new_status=target.value,
                requester_id=command.requester_id,
            )
        return materialize(order)
