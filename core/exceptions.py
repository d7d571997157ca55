class LimitExceeded(ValueError):
    """Raised when a plan limit (stores, products, subscription products) is reached."""


class InvalidTransition(ValueError):
    pass


class PaymentError(ValueError):
    """Payment session or webhook could not be processed."""
