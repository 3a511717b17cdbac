"""Delegation Portal API client.

A thin wrapper around the REST API used by front ends and scripts.
Every method returns a ``(data, error)`` tuple instead of raising:
``data`` holds the parsed JSON on success and ``error`` is ``None``;
on failure ``data`` is ``None`` (or an empty list for listings) and
``error`` is a dictionary with ``status_code`` and ``message``.

Exposed operations:

* :meth:`login` – exchange credentials for a token and keep it.
* :meth:`list_operations` – the caller's operations, newest first.
* :meth:`get_operation` – one operation for the detail view.
* :meth:`create_operation` – create an operation directly.
* :meth:`update_status` – move an operation to another status.
* :meth:`submit_form` – forward a raw Tally iframe message.
* :meth:`list_forms` – the catalog of delegation forms.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

Error = Dict[str, Any]


class DelegationPortalAPI:
    """Client for the Delegation Portal API (``/api/v1``)."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Server root, e.g. ``https://portal.example.com``.
                ``/api/v1`` is appended automatically.
            api_key: Optional bearer token sent in the ``Authorization``
                header.  :meth:`login` sets it.
            session: Optional requests session.
            timeout: Per-request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/") + "/api/v1"
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helper
    # ------------------------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any | None = None,
        data: str | None = None,
    ) -> Tuple[Optional[Any], Optional[Error]]:
        url = f"{self.base_url}{path}"
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        if data is not None:
            headers["Content-Type"] = "text/plain; charset=utf-8"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                json=json_body,
                data=data.encode("utf-8") if data is not None else None,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = ""
            if exc.response is not None:
                try:
                    err_json = exc.response.json()
                    message = err_json.get("detail") or str(err_json)
                except ValueError:
                    message = exc.response.text
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def login(self, email: str, password: str) -> Tuple[bool, Optional[Error]]:
        """Authenticate and remember the returned token."""
        data, error = self._request("POST", "/users/login", json_body={"email": email, "password": password})
        if error:
            return False, error
        self.api_key = data["access_token"]
        return True, None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def list_operations(self) -> Tuple[List[Dict[str, Any]], Optional[Error]]:
        data, error = self._request("GET", "/operations/")
        if error:
            return [], error
        return data if isinstance(data, list) else [], None

    def get_operation(self, operation_id: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self._request("GET", f"/operations/{operation_id}")

    def create_operation(
        self,
        *,
        name: str,
        client_name: str,
        type: str,
        operation_type: str,
        form_data: Optional[Dict[str, Any]] = None,
        notes: Optional[str] = None,
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        payload = {
            "name": name,
            "client_name": client_name,
            "type": type,
            "operation_type": operation_type,
            "form_data": form_data or {},
            "notes": notes,
        }
        return self._request("POST", "/operations/", json_body=payload)

    def update_status(self, operation_id: str, status: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Set the status (``En attente``, ``En cours`` or ``Terminé``)."""
        return self._request("PATCH", f"/operations/{operation_id}/status", json_body={"status": status})

    # ------------------------------------------------------------------
    # Forms
    # ------------------------------------------------------------------
    def list_forms(self) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self._request("GET", "/forms/")

    def submit_form(self, slug: str, message: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Forward the raw ``message`` event data of a Tally iframe."""
        return self._request("POST", f"/forms/{slug}/submissions", data=message)
