"""NSX-T Policy API broker backed by :mod:`requests`.

Authentication is the session's business: callers hand in a
:class:`requests.Session` that already carries credentials, client
certificates or a session cookie.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from .broker import NsxtBroker
from .config import NsxtConfig
from .errors import BrokerError
from .model import RealizedEntityList, SearchResponse, StaticRoute
from .translator import STATIC_ROUTES_SEGMENT

LOG = logging.getLogger(__name__)

POLICY_API_PREFIX = "/policy/api/v1"
SEARCH_PATH = "/search/query"
REALIZED_ENTITIES_PATH = "/infra/realized-state/realized-entities"


class PolicyApiBroker(NsxtBroker):
    """Talk to the policy store over HTTPS."""

    def __init__(
        self,
        host: str,
        session: Optional[requests.Session] = None,
        *,
        timeout: float = 30.0,
        verify: bool = True,
    ) -> None:
        if "://" not in host:
            host = f"https://{host}"
        self._base_url = host.rstrip("/") + POLICY_API_PREFIX
        self._session = session or requests.Session()
        self._timeout = timeout
        self._verify = verify

    @classmethod
    def from_config(
        cls, config: NsxtConfig, session: Optional[requests.Session] = None
    ) -> "PolicyApiBroker":
        return cls(config.host, session, timeout=config.timeout, verify=config.verify)

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        allow_missing: bool = False,
    ) -> Dict[str, Any]:
        url = self._base_url + path
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                json=json,
                timeout=self._timeout,
                verify=self._verify,
            )
        except requests.RequestException as exc:
            raise BrokerError(f"{method} {path} failed: {exc}") from exc

        if allow_missing and response.status_code == 404:
            LOG.debug("%s %s: resource already absent", method, path)
            return {}

        if not response.ok:
            raise BrokerError(
                f"{method} {path} returned {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as exc:
            raise BrokerError(f"{method} {path} returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise BrokerError(f"{method} {path} returned unexpected payload")
        return payload

    # ------------------------------------------------------------------
    # NsxtBroker
    # ------------------------------------------------------------------
    def query_entities(self, query: str) -> SearchResponse:
        results: List[Dict[str, Any]] = []
        params: Dict[str, Any] = {"query": query}
        while True:
            page = SearchResponse.from_dict(self._request("GET", SEARCH_PATH, params=params))
            results.extend(page.results)
            # The last page repeats the total count as its cursor.
            if not page.cursor or len(results) >= page.result_count or not page.results:
                break
            params = {"query": query, "cursor": page.cursor}
        return SearchResponse(results=results, result_count=len(results))

    def create_static_route(
        self, router_path: str, route_id: str, static_route: StaticRoute
    ) -> None:
        self._request(
            "PATCH",
            _static_route_url(router_path, route_id),
            json=static_route.to_dict(),
        )

    def delete_static_route(self, router_path: str, route_name: str) -> None:
        self._request(
            "DELETE",
            _static_route_url(router_path, route_name),
            allow_missing=True,
        )

    def list_realized_entities(self, intent_path: str) -> RealizedEntityList:
        payload = self._request(
            "GET",
            REALIZED_ENTITIES_PATH,
            params={"intent_path": intent_path},
        )
        return RealizedEntityList.from_dict(payload)


def _static_route_url(router_path: str, identifier: str) -> str:
    # IDs are one path segment; a stray "/" must not address another resource.
    return f"{router_path}/{STATIC_ROUTES_SEGMENT}/{quote(identifier, safe='')}"


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason or ""
    if isinstance(body, dict) and body.get("error_message"):
        return str(body["error_message"])
    return response.reason or ""
