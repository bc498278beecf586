"""Minimal XML-RPC client for Odoo."""
from __future__ import annotations

import os
import pathlib
import socket
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence
import xmlrpc.client

from dotenv import load_dotenv

# Load environment variables from .env file
ROOT = pathlib.Path(__file__).resolve().parents[2]
load_dotenv(ROOT / ".env")


class OdooClientError(RuntimeError):
    """Raised when the XML-RPC client encounters an error."""


class OdooRequestError(OdooClientError):
    """Raised when Odoo rejects a request (fault or HTTP error response)."""

    def __init__(self, message: str, code: object = None) -> None:
        super().__init__(message)
        self.code = code


class OdooTimeoutError(OdooClientError):
    """Raised when a paged query does not finish within its deadline."""


@dataclass
class OdooClientConfig:
    """Configuration for connecting to an Odoo instance."""

    url: str
    database: str
    username: str
    password: str

    @classmethod
    def from_env(cls) -> "OdooClientConfig":
        """Create a configuration by reading environment variables."""
        missing: List[str] = []
        env_map = {
            "url": os.getenv("ODOO_URL"),
            "database": os.getenv("ODOO_DB") or os.getenv("ODOO_DATABASE"),
            "username": os.getenv("ODOO_USERNAME"),
            "password": os.getenv("ODOO_PASSWORD"),
        }
        for key, value in env_map.items():
            if not value:
                missing.append(f"ODOO_{key.upper()}")
        if missing:
            raise OdooClientError(
                "Missing required environment variables: " + ", ".join(sorted(missing))
            )
        return cls(
            url=env_map["url"],
            database=env_map["database"],
            username=env_map["username"],
            password=env_map["password"],
        )


class _TimeoutMixin:
    """Apply a mutable socket timeout to every connection the transport hands out."""

    timeout: Optional[float] = None

    def make_connection(self, host):
        connection = super().make_connection(host)
        timeout = self.timeout if self.timeout is not None else socket.getdefaulttimeout()
        connection.timeout = timeout
        if connection.sock is not None:
            connection.sock.settimeout(timeout)
        return connection


class TimeoutTransport(_TimeoutMixin, xmlrpc.client.Transport):
    pass


class TimeoutSafeTransport(_TimeoutMixin, xmlrpc.client.SafeTransport):
    pass


class OdooClient:
    """Small helper around the Odoo XML-RPC API.

    ``timeout`` is the socket timeout, in seconds, applied to each request
    on the object endpoint. ``None`` leaves sockets blocking.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        database: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        config = self._build_config(url, database, username, password)
        self.url = config.url.rstrip("/")
        self.database = config.database
        self.username = config.username
        self.password = config.password
        self.timeout = timeout
        self._uid: Optional[int] = None
        transport_cls = TimeoutSafeTransport if self.url.startswith("https") else TimeoutTransport
        self._transport = transport_cls()
        self._transport.timeout = timeout
        proxy_options = {"allow_none": True}
        self._common = xmlrpc.client.ServerProxy(f"{self.url}/xmlrpc/2/common", **proxy_options)
        self._object = xmlrpc.client.ServerProxy(
            f"{self.url}/xmlrpc/2/object", transport=self._transport, **proxy_options
        )

    @staticmethod
    def _build_config(
        url: Optional[str],
        database: Optional[str],
        username: Optional[str],
        password: Optional[str],
    ) -> OdooClientConfig:
        if all([url, database, username, password]):
            return OdooClientConfig(url=url, database=database, username=username, password=password)
        if any([url, database, username, password]):
            missing = [
                name
                for name, value in {
                    "url": url,
                    "database": database,
                    "username": username,
                    "password": password,
                }.items()
                if not value
            ]
            raise OdooClientError(
                "Incomplete credentials supplied. Missing: " + ", ".join(sorted(missing))
            )
        return OdooClientConfig.from_env()

    # Public API -----------------------------------------------------------------
    def authenticate(self) -> int:
        """Authenticate with the Odoo server and return the user id."""
        uid = self._common.authenticate(self.database, self.username, self.password, {})
        if not uid:
            raise OdooClientError("Authentication with Odoo failed. Check credentials.")
        self._uid = int(uid)
        return self._uid

    # XML-RPC wrappers ------------------------------------------------------------
    def search_read(
        self,
        model: str,
        domain: Sequence[Any],
        fields: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        order: Optional[str] = None,
        offset: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        kwargs: Dict[str, Any] = {}
        if fields is not None:
            kwargs["fields"] = list(fields)
        if limit is not None:
            kwargs["limit"] = int(limit)
        if offset:
            kwargs["offset"] = int(offset)
        if order is not None:
            kwargs["order"] = order
        return self._execute(model, "search_read", [list(domain)], kwargs)

    def search_read_all(
        self,
        model: str,
        domain: Sequence[Any],
        fields: Optional[Sequence[str]] = None,
        *,
        order: str = "id asc",
        page_size: int = 100,
        timeout: Optional[float] = None,
    ) -> List[Dict[str, Any]]:
        """Page through every record matching ``domain``.

        ``timeout`` bounds the total time spent across all pages, in seconds.
        Each request's socket timeout is capped at the time left.
        """
        page_size = max(1, int(page_size))
        deadline = time.monotonic() + timeout if timeout is not None else None
        records: List[Dict[str, Any]] = []
        offset = 0
        while True:
            remaining = None
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise self._deadline_error(model, timeout)
            try:
                with self._request_timeout(remaining):
                    page = self.search_read(
                        model, domain, fields=fields, limit=page_size, order=order, offset=offset
                    )
            except socket.timeout as exc:
                raise self._deadline_error(model, timeout) from exc
            if deadline is not None and time.monotonic() > deadline:
                raise self._deadline_error(model, timeout)
            records.extend(page)
            if len(page) < page_size:
                return records
            offset += len(page)

    def create(
        self,
        model: str,
        values: Dict[str, Any],
        *,
        context: Optional[Dict[str, Any]] = None,
    ) -> int:
        kwargs: Dict[str, Any] = {}
        if context:
            kwargs["context"] = context
        record_id = self._execute(model, "create", [values], kwargs)
        return int(record_id)

    # Internal helpers ------------------------------------------------------------
    @contextmanager
    def _request_timeout(self, remaining: Optional[float]) -> Iterator[None]:
        if remaining is None:
            yield
            return
        self._transport.timeout = remaining if self.timeout is None else min(self.timeout, remaining)
        try:
            yield
        finally:
            self._transport.timeout = self.timeout

    @staticmethod
    def _deadline_error(model: str, timeout: Optional[float]) -> OdooTimeoutError:
        return OdooTimeoutError(f"Querying {model} did not complete within {timeout:g} seconds")

    def _execute(self, model: str, method: str, args: List[Any], kwargs: Dict[str, Any]) -> Any:
        self._ensure_authenticated()
        try:
            return self._object.execute_kw(
                self.database,
                self._uid,
                self.password,
                model,
                method,
                args,
                kwargs,
            )
        except xmlrpc.client.Fault as exc:
            raise OdooRequestError(
                f"Odoo rejected {model}.{method}: {exc.faultString}", code=exc.faultCode
            ) from exc
        except xmlrpc.client.ProtocolError as exc:
            raise OdooRequestError(
                f"Odoo returned HTTP {exc.errcode} for {model}.{method}: {exc.errmsg}",
                code=exc.errcode,
            ) from exc

    def _ensure_authenticated(self) -> None:
        if self._uid is None:
            raise OdooClientError(
                "Client is not authenticated. Call authenticate() before making requests."
            )


__all__ = [
    "OdooClient",
    "OdooClientError",
    "OdooClientConfig",
    "OdooRequestError",
    "OdooTimeoutError",
]
