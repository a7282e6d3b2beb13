"""storefront - cart, checkout and order persistence for a demo shop."""

__version__ = "0.1.0"
