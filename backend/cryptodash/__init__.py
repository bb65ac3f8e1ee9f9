"""CryptoDash: live crypto prices pushed to dashboard clients."""

__version__ = "0.1.0"
