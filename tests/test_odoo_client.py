"""Tests for the Odoo XML-RPC client abstraction."""
from __future__ import annotations

import os
import socket
from unittest import TestCase
from unittest.mock import MagicMock, patch

import xmlrpc.client

from packages.odoo_client import OdooClient, OdooClientError, OdooRequestError, OdooTimeoutError
from packages.odoo_client.client import TimeoutSafeTransport


class TestOdooClient(TestCase):
    def setUp(self) -> None:
        self.env_backup = dict(os.environ)

    def tearDown(self) -> None:
        os.environ.clear()
        os.environ.update(self.env_backup)

    def _set_env(self) -> None:
        os.environ.update(
            {
                "ODOO_URL": "https://odoo.example.com",
                "ODOO_DB": "demo",
                "ODOO_USERNAME": "admin",
                "ODOO_PASSWORD": "secret",
            }
        )

    def _client(self, proxy_cls: MagicMock, uid: int = 7) -> tuple[OdooClient, MagicMock]:
        common_proxy = MagicMock()
        object_proxy = MagicMock()
        proxy_cls.side_effect = [common_proxy, object_proxy]
        common_proxy.authenticate.return_value = uid
        client = OdooClient()
        client.authenticate()
        return client, object_proxy

    def test_missing_env_variables_raise(self) -> None:
        for name in ("ODOO_URL", "ODOO_DB", "ODOO_DATABASE", "ODOO_USERNAME", "ODOO_PASSWORD"):
            os.environ.pop(name, None)
        with self.assertRaises(OdooClientError):
            OdooClient()

    def test_partial_credentials_raise(self) -> None:
        with self.assertRaises(OdooClientError) as ctx:
            OdooClient(url="https://odoo.example.com", database="demo")
        self.assertIn("password", str(ctx.exception))

    def test_authenticate_success(self) -> None:
        self._set_env()
        with patch.object(xmlrpc.client, "ServerProxy") as proxy_cls:
            common_proxy = MagicMock()
            object_proxy = MagicMock()
            proxy_cls.side_effect = [common_proxy, object_proxy]
            common_proxy.authenticate.return_value = 42

            client = OdooClient()
            uid = client.authenticate()

            self.assertEqual(uid, 42)
            common_proxy.authenticate.assert_called_once_with("demo", "admin", "secret", {})

    def test_requests_require_authentication(self) -> None:
        self._set_env()
        with patch.object(xmlrpc.client, "ServerProxy"):
            client = OdooClient()
            with self.assertRaises(OdooClientError):
                client.search_read("product.template", [])

    def test_search_read_passes_paging_options(self) -> None:
        self._set_env()
        with patch.object(xmlrpc.client, "ServerProxy") as proxy_cls:
            client, object_proxy = self._client(proxy_cls)
            object_proxy.execute_kw.return_value = [{"id": 10}]

            result = client.search_read(
                "product.template",
                [("id", ">", 3)],
                fields=["id"],
                limit=5,
                order="id asc",
                offset=10,
            )

            self.assertEqual(result, [{"id": 10}])
            args = object_proxy.execute_kw.call_args[0]
            self.assertEqual(args[0], "demo")
            self.assertEqual(args[3], "product.template")
            self.assertEqual(args[4], "search_read")
            self.assertEqual(args[5], [[("id", ">", 3)]])
            self.assertEqual(args[6], {"fields": ["id"], "limit": 5, "offset": 10, "order": "id asc"})

    def test_search_read_all_follows_pages(self) -> None:
        self._set_env()
        with patch.object(xmlrpc.client, "ServerProxy") as proxy_cls:
            client, object_proxy = self._client(proxy_cls)
            object_proxy.execute_kw.side_effect = [[{"id": 1}, {"id": 2}], [{"id": 3}]]

            records = client.search_read_all("stock.warehouse", [], fields=["id"], page_size=2)

            self.assertEqual([r["id"] for r in records], [1, 2, 3])
            second_kwargs = object_proxy.execute_kw.call_args_list[1][0][6]
            self.assertEqual(second_kwargs["offset"], 2)

    def test_search_read_all_times_out(self) -> None:
        self._set_env()
        with patch.object(xmlrpc.client, "ServerProxy") as proxy_cls:
            client, object_proxy = self._client(proxy_cls)
            object_proxy.execute_kw.return_value = [{"id": 1}]
            with patch("packages.odoo_client.client.time.monotonic", side_effect=[0.0, 1.0, 400.0]):
                with self.assertRaises(OdooTimeoutError):
                    client.search_read_all("stock.warehouse", [], page_size=1, timeout=300)
            self.assertEqual(object_proxy.execute_kw.call_count, 1)

    def test_search_read_all_times_out_when_last_page_is_slow(self) -> None:
        self._set_env()
        clock = {"now": 0.0}

        def slow_page(*_: object) -> list:
            clock["now"] += 400.0
            return [{"id": 1}]

        with patch.object(xmlrpc.client, "ServerProxy") as proxy_cls:
            client, object_proxy = self._client(proxy_cls)
            object_proxy.execute_kw.side_effect = slow_page
            with patch("packages.odoo_client.client.time.monotonic", side_effect=lambda: clock["now"]):
                with self.assertRaises(OdooTimeoutError):
                    client.search_read_all("stock.warehouse", [], page_size=100, timeout=300)
            self.assertEqual(object_proxy.execute_kw.call_count, 1)

    def test_search_read_all_caps_socket_timeout_at_time_left(self) -> None:
        self._set_env()
        clock = {"now": 0.0}
        seen: list = []

        with patch.object(xmlrpc.client, "ServerProxy") as proxy_cls:
            client, object_proxy = self._client(proxy_cls)

            def record_timeout(*_: object) -> list:
                seen.append(client._transport.timeout)
                return []

            object_proxy.execute_kw.side_effect = record_timeout

            def monotonic() -> float:
                # deadline is computed at 0, the pre-request check runs at 100
                value = clock["now"]
                clock["now"] = 100.0
                return value

            with patch("packages.odoo_client.client.time.monotonic", side_effect=monotonic):
                self.assertEqual(client.search_read_all("stock.warehouse", [], timeout=300), [])

            self.assertEqual(seen, [200.0])
            self.assertIsNone(client._transport.timeout)

    def test_socket_timeout_during_paging_becomes_timeout_error(self) -> None:
        self._set_env()
        with patch.object(xmlrpc.client, "ServerProxy") as proxy_cls:
            client, object_proxy = self._client(proxy_cls)
            object_proxy.execute_kw.side_effect = socket.timeout("timed out")

            with self.assertRaises(OdooTimeoutError):
                client.search_read_all("stock.warehouse", [], timeout=300)

    def test_object_proxy_uses_timeout_transport(self) -> None:
        self._set_env()
        with patch.object(xmlrpc.client, "ServerProxy") as proxy_cls:
            client = OdooClient(
                url="https://odoo.example.com",
                database="demo",
                username="admin",
                password="secret",
                timeout=30,
            )

            self.assertIsInstance(client._transport, TimeoutSafeTransport)
            self.assertEqual(client._transport.timeout, 30)
            object_call = proxy_cls.call_args_list[1]
            self.assertIs(object_call.kwargs["transport"], client._transport)

    def test_create_sends_context(self) -> None:
        self._set_env()
        with patch.object(xmlrpc.client, "ServerProxy") as proxy_cls:
            client, object_proxy = self._client(proxy_cls)
            object_proxy.execute_kw.return_value = 55

            record_id = client.create(
                "stock.quant", {"product_id": 1}, context={"inventory_mode": True}
            )

            self.assertEqual(record_id, 55)
            args = object_proxy.execute_kw.call_args[0]
            self.assertEqual(args[4], "create")
            self.assertEqual(args[5], [{"product_id": 1}])
            self.assertEqual(args[6], {"context": {"inventory_mode": True}})

    def test_fault_is_wrapped_as_request_error(self) -> None:
        self._set_env()
        with patch.object(xmlrpc.client, "ServerProxy") as proxy_cls:
            client, object_proxy = self._client(proxy_cls)
            object_proxy.execute_kw.side_effect = xmlrpc.client.Fault(2, "ValidationError")

            with self.assertRaises(OdooRequestError) as ctx:
                client.create("stock.quant", {"product_id": 1})

            self.assertEqual(ctx.exception.code, 2)
            self.assertIn("stock.quant.create", str(ctx.exception))
