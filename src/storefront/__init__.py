"""Cart, checkout and order bookkeeping for the storefront."""

__version__ = "0.1.0"
