"""Thin GraphQL client for the Wealthsimple API.

Every call is a single best-effort POST: there is no timeout, retry or
backoff, and calls are awaited one after another.  A non-200 answer, or a 200
answer without usable ``data``, becomes a :class:`~ws_ofx.errors.FetchError`
carrying the raw response body.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from ws_ofx.config import DEFAULT_GRAPHQL_URL
from ws_ofx.errors import FetchError

logger = logging.getLogger(__name__)


class GraphQLClient:
    """Issue authenticated GraphQL requests and follow cursor pagination."""

    def __init__(
        self,
        access_token: str,
        *,
        url: str = DEFAULT_GRAPHQL_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.access_token = access_token
        self.url = url
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                timeout=None,
                transport=self._transport,
                headers={
                    "content-type": "application/json",
                    "authorization": f"Bearer {self.access_token}",
                },
            )
        return self._http

    async def close(self) -> None:
        if self._http is not None and not self._http.is_closed:
            await self._http.aclose()

    async def __aenter__(self) -> "GraphQLClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _post(
        self,
        operation_name: str,
        query: str,
        variables: Dict[str, Any],
    ) -> Tuple[Dict[str, Any], httpx.Response]:
        http = await self._get_client()
        payload = {
            "operationName": operation_name,
            "query": query,
            "variables": variables,
        }
        logger.debug("POST %s %s", self.url, operation_name)
        response = await http.post(self.url, json=payload)
        if response.status_code != 200:
            raise FetchError(operation_name, response.status_code, response.text)

        try:
            body = response.json()
        except ValueError as exc:
            # login pages and proxies answer 200 with HTML
            raise FetchError(
                operation_name, response.status_code, response.text
            ) from exc
        data = body.get("data") if isinstance(body, dict) else None
        if data is None:
            # GraphQL reports resolver errors with a 200 status and no data.
            raise FetchError(operation_name, response.status_code, response.text)
        return data, response

    async def execute(
        self,
        operation_name: str,
        query: str,
        variables: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Run one operation and return its ``data`` object."""

        data, _ = await self._post(operation_name, query, variables)
        return data

    async def paginate(
        self,
        operation_name: str,
        query: str,
        variables: Dict[str, Any],
        path: Sequence[str],
    ) -> List[Dict[str, Any]]:
        """Collect ``edges[].node`` across every page of a connection.

        ``path`` locates the connection inside ``data``, for example
        ``("identity", "accounts")``.  The server's ``endCursor`` is sent back
        as the ``cursor`` variable until ``hasNextPage`` turns false.  A
        missing connection, or a next page whose cursor does not advance, is
        a :class:`~ws_ofx.errors.FetchError`.
        """

        if "cursor" in variables:
            raise ValueError("Initial variables must not include a cursor")

        nodes: List[Dict[str, Any]] = []
        cursor: Optional[str] = None
        has_next_page = True
        page = 0
        while has_next_page:
            page_variables = dict(variables)
            if cursor is not None:
                page_variables["cursor"] = cursor

            data, response = await self._post(operation_name, query, page_variables)
            connection = _resolve_path(data, path)
            if connection is None:
                logger.error(
                    "%s response has no '%s' connection",
                    operation_name,
                    ".".join(path),
                )
                raise FetchError(operation_name, response.status_code, response.text)
            page_nodes = [edge["node"] for edge in connection.get("edges") or []]
            nodes.extend(page_nodes)

            page_info = connection.get("pageInfo") or {}
            has_next_page = bool(page_info.get("hasNextPage"))
            next_cursor = page_info.get("endCursor")
            if has_next_page and (next_cursor is None or next_cursor == cursor):
                logger.error("%s cursor did not advance past %r", operation_name, cursor)
                raise FetchError(operation_name, response.status_code, response.text)
            cursor = next_cursor
            page += 1
            logger.debug(
                "%s page %s: %s nodes (next page: %s)",
                operation_name,
                page,
                len(page_nodes),
                has_next_page,
            )

        return nodes


def _resolve_path(
    data: Dict[str, Any], path: Sequence[str]
) -> Optional[Dict[str, Any]]:
    current: Any = data
    for key in path:
        if not isinstance(current, dict) or current.get(key) is None:
            return None
        current = current[key]
    return current if isinstance(current, dict) else None


__all__ = ["GraphQLClient"]
