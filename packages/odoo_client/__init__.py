"""Odoo XML-RPC client utilities."""
from .client import OdooClient, OdooClientConfig, OdooClientError, OdooRequestError, OdooTimeoutError

__all__ = ["OdooClient", "OdooClientError", "OdooClientConfig", "OdooRequestError", "OdooTimeoutError"]
