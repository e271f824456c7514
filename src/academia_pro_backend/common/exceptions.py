"""
This file contains custom, application-specific exceptions.
"""

class PaymentDeclinedError(Exception):
    """Raised by a payment gateway when a charge is refused."""
    def __init__(self, reason: str = "declined"):
        super().__init__(reason)
        self.reason = reason

class SubscriptionOverflowError(Exception):
    """Raised to a realtime subscriber that fell too far behind and was dropped."""
    pass

class SubscriptionClosedError(Exception):
    """Raised when reading from a realtime subscription that was already closed."""
    pass
