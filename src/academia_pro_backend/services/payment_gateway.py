'''
Payment processing seam for the checkout flow.
'''
import uuid
from decimal import Decimal
from uuid import UUID

from ..common.exceptions import PaymentDeclinedError
from ..common.logger import log


class PaymentGateway:
    """
    Interface of a payment processor. `charge` returns a transaction
    reference or raises PaymentDeclinedError.
    """
    async def charge(self, order_id: UUID, amount: Decimal, payment_method: str) -> str:
        raise NotImplementedError


class SimulatedPaymentGateway(PaymentGateway):
    """
    Accepts every charge. The marketplace has no real processor wired in,
    so payments settle immediately.
    """
    async def charge(self, order_id: UUID, amount: Decimal, payment_method: str) -> str:
        if amount < 0:
            raise PaymentDeclinedError("negative amount")
        reference = f"sim_{uuid.uuid4().hex[:16]}"
        log.info(f"Simulated charge of {amount} via {payment_method} for order {order_id}: {reference}")
        return reference
