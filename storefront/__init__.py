"""Digital-goods storefront: variant pricing, flash deals, checkout and fulfillment grouping."""

__version__ = "0.1.0"
