"""Error types surfaced by the booking core"""


class TripValidationError(ValueError):
    """Trip request cannot be priced or booked as entered."""


class CatalogFetchError(RuntimeError):
    pass


class CheckoutError(RuntimeError):
    pass
