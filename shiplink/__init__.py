"""ShipLink: ShipStation rates, rate caching and order-to-shipment creation."""

__version__ = "1.0.0"
