"""Python client for the reception desk relay."""

from .relay_client import RelayClient

__all__ = ["RelayClient"]
