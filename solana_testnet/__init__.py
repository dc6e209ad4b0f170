"""Private Solana test network manager."""

__version__ = "0.1.0"
