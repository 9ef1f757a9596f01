"""shieldtx - shielded withdrawal client for Substrate mixer pallets."""

__version__ = "0.1.0"
