"""Marketplace bounded context — order fulfillment for a multi-seller marketplace.

Owns the order lifecycle, payment reconciliation against external gateways
(Stripe, PayPal) and shipment reconciliation against an external carrier.
Customers, sellers, logistics providers and the product catalogue are
collaborators registered in the same domain so that stock, order, payment
and shipment writes share one unit of work.
"""

from protean.domain import Domain

marketplace = Domain(name="marketplace")
