from __future__ import annotations

import http.client
import logging
import threading
import xmlrpc.client
from xml.parsers.expat import ExpatError
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from errors import OdooError

logger = logging.getLogger("form-orders")

COMMON_ENDPOINT = "/xmlrpc/2/common"
OBJECT_ENDPOINT = "/xmlrpc/2/object"

# Transport, protocol and marshalling failures of a single XML-RPC call.
REMOTE_ERRORS = (
    xmlrpc.client.Error,
    OSError,
    http.client.HTTPException,
    ExpatError,
    OverflowError,
    TypeError,
)


@dataclass
class OdooCredentials:
    url: str
    db: str
    username: str
    password: str
    timeout: float = 30.0


class _TimeoutTransport(xmlrpc.client.Transport):
    def __init__(self, timeout: float, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._timeout = timeout

    def make_connection(self, host):
        connection = super().make_connection(host)
        connection.timeout = self._timeout
        return connection


class _TimeoutSafeTransport(xmlrpc.client.SafeTransport):
    def __init__(self, timeout: float, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._timeout = timeout

    def make_connection(self, host):
        connection = super().make_connection(host)
        connection.timeout = self._timeout
        return connection


def _describe(exc: Exception) -> str:
    if isinstance(exc, xmlrpc.client.Fault):
        text = str(exc.faultString or "").strip()
        return text.splitlines()[-1] if text else str(exc)
    if isinstance(exc, xmlrpc.client.ProtocolError):
        return f"HTTP {exc.errcode} {exc.errmsg}"
    return str(exc) or exc.__class__.__name__


class OdooClient:
    """Thin wrapper around Odoo's external XML-RPC API.

    A fresh ``ServerProxy`` is built for every call, so one client can be
    shared by requests running in worker threads.
    """

    def __init__(self, creds: OdooCredentials) -> None:
        self.creds = creds
        self._uid: Optional[int] = None
        self._lock = threading.Lock()

    def _proxy(self, endpoint: str) -> xmlrpc.client.ServerProxy:
        url = f"{self.creds.url.rstrip('/')}{endpoint}"
        if url.startswith("https://"):
            transport = _TimeoutSafeTransport(self.creds.timeout)
        else:
            transport = _TimeoutTransport(self.creds.timeout)
        return xmlrpc.client.ServerProxy(url, transport=transport, allow_none=True)

    @property
    def uid(self) -> int:
        if self._uid is None:
            return self.authenticate()
        return self._uid

    def version(self) -> Dict[str, Any]:
        try:
            return self._proxy(COMMON_ENDPOINT).version()
        except REMOTE_ERRORS as exc:
            raise OdooError(f"Odoo version check failed: {_describe(exc)}") from exc

    def authenticate(self) -> int:
        with self._lock:
            if self._uid is not None:
                return self._uid
            try:
                uid = self._proxy(COMMON_ENDPOINT).authenticate(
                    self.creds.db, self.creds.username, self.creds.password, {}
                )
            except REMOTE_ERRORS as exc:
                raise OdooError(f"Odoo auth failed: {_describe(exc)}") from exc
            if not uid:
                raise OdooError("Odoo auth failed: Invalid credentials")
            self._uid = int(uid)
            logger.info("Connected to Odoo, UID: %s", self._uid)
            return self._uid

    def execute_kw(
        self,
        model: str,
        method: str,
        args: List[Any],
        kwargs: Optional[Dict[str, Any]] = None,
    ) -> Any:
        uid = self.uid
        params: List[Any] = [self.creds.db, uid, self.creds.password, model, method, args]
        if kwargs:
            params.append(kwargs)
        try:
            return self._proxy(OBJECT_ENDPOINT).execute_kw(*params)
        except REMOTE_ERRORS as exc:
            raise OdooError(
                f"{model}.{method} failed: {_describe(exc)}", model=model, method=method
            ) from exc

    def search(self, model: str, domain: List[Any], **kwargs: Any) -> List[int]:
        return self.execute_kw(model, "search", [domain], kwargs or None)

    def search_read(self, model: str, domain: List[Any], **kwargs: Any) -> List[Dict[str, Any]]:
        return self.execute_kw(model, "search_read", [domain], kwargs or None)

    def read(self, model: str, ids: List[int], fields: List[str]) -> List[Dict[str, Any]]:
        return self.execute_kw(model, "read", [ids], {"fields": fields})

    def create(self, model: str, values: Dict[str, Any], **kwargs: Any) -> int:
        return self.execute_kw(model, "create", [values], kwargs or None)

    def call(self, model: str, method: str, *args: Any, **kwargs: Any) -> Any:
        return self.execute_kw(model, method, list(args), kwargs or None)


_client: Optional[OdooClient] = None


def create_odoo_client(creds: OdooCredentials) -> OdooClient:
    return OdooClient(creds)


def get_odoo_client() -> OdooClient:
    global _client
    if _client is None:
        from config import settings

        _client = create_odoo_client(
            OdooCredentials(
                url=settings.odoo_url,
                db=settings.odoo_db,
                username=settings.odoo_username,
                password=settings.odoo_password,
                timeout=settings.odoo_timeout_seconds,
            )
        )
    return _client
