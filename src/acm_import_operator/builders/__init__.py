"""Builders for external clients."""

from .gateway import create_gateway_from_env
from .store import create_store_from_env

__all__ = ["create_gateway_from_env", "create_store_from_env"]
