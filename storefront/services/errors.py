from .line_items import IncompleteSelectionError


class NotFoundError(LookupError):
    """A product, cart item, order or flash deal does not exist."""


class InvalidStatusError(ValueError):
    """Unknown order status or payment proof status."""


__all__ = ["IncompleteSelectionError", "InvalidStatusError", "NotFoundError"]
