"""Track startup funding opportunities, products and applications."""

__version__ = "0.1.0"
