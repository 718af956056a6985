"""
dataset_register.graphdb.client
===============================

HTTP access to a GraphDB repository.

:class:`GraphDbClient` wraps an :class:`httpx.AsyncClient`. With
credentials it logs in once, sends the returned token on every request
and, on a 401 or 409, refreshes the token and retries exactly once.
:class:`TokenSession` holds the current token and serialises re-login
between concurrent requests.
"""

import asyncio
import os
from typing import Any, Dict, Iterable, Optional, Tuple

import httpx
from loguru import logger
from pydantic import BaseModel
from rdflib import Dataset
from rdflib.term import Node

from ..settings import (
    DEFAULT_TIMEOUT,
    ENV_GRAPHDB_PASSWORD,
    ENV_GRAPHDB_REPOSITORY,
    ENV_GRAPHDB_URL,
    ENV_GRAPHDB_USERNAME,
    PASSWORD_HEADER,
    RETRY_STATUS_CODES,
    SPARQL_RESULTS_JSON,
    TRIG_CONTENT_TYPE,
)

Quad = Tuple[Node, Node, Node, Node]


class AuthenticationError(Exception):
    """Login to GraphDB was refused. Not retried."""

    def __init__(self, username: str, status_code: int):
        super().__init__(
            f"Could not authenticate username {username} with GraphDB; "
            f"got status code {status_code}"
        )
        self.username = username
        self.status_code = status_code


class GraphDbSettings(BaseModel):
    """
    Connection settings for a GraphDB repository.

    Credentials are optional; without them requests are sent
    unauthenticated.
    """

    url: str
    repository: str
    username: Optional[str] = None
    password: Optional[str] = None

    @classmethod
    def from_env(cls) -> "GraphDbSettings":
        return cls(
            url=os.environ[ENV_GRAPHDB_URL],
            repository=os.environ[ENV_GRAPHDB_REPOSITORY],
            username=os.getenv(ENV_GRAPHDB_USERNAME) or None,
            password=os.getenv(ENV_GRAPHDB_PASSWORD) or None,
        )


class TokenSession:
    """
    Holds the bearer token issued by GraphDB.

    ``lock`` serialises re-authentication so that concurrent requests
    that all find the token missing log in only once.
    """

    def __init__(self) -> None:
        self._token: Optional[str] = None
        self.lock = asyncio.Lock()

    def current_token(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        self._token = token

    def invalidate(self, token: Optional[str] = None) -> None:
        """
        Forget the cached token. If ``token`` is given, only forget it
        when it is still the cached one (another request may already
        have replaced it).
        """
        if token is None or token == self._token:
            self._token = None


def to_trig(quads: Iterable[Quad]) -> str:
    """Serialise quads to TriG."""
    store = Dataset()
    for quad in quads:
        store.add(quad)
    return store.serialize(format="trig")


class GraphDbClient:
    """
    GraphDB client that uses the REST API.

    * :meth:`authenticate` logs in and caches the bearer token.
    * :meth:`request` sends a request relative to the repository URL,
      retrying exactly once with a fresh token on 401/409.
    * :meth:`query` runs a SPARQL SELECT and returns the JSON results.

    The HTTP transport can be injected for testing.
    """

    def __init__(
        self,
        url: str,
        repository: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.url = url.rstrip("/")
        self.repository = repository
        self.session = TokenSession()
        self.username: Optional[str] = None
        self.password: Optional[str] = None
        self._http = httpx.AsyncClient(transport=transport, timeout=timeout)

    @classmethod
    async def from_settings(
        cls,
        settings: GraphDbSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "GraphDbClient":
        client = cls(settings.url, settings.repository, transport=transport)
        if settings.username is not None and settings.password is not None:
            await client.authenticate(settings.username, settings.password)
        return client

    @classmethod
    async def from_env(
        cls, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "GraphDbClient":
        return await cls.from_settings(GraphDbSettings.from_env(), transport=transport)

    @property
    def repository_url(self) -> str:
        return f"{self.url}/repositories/{self.repository}"

    @property
    def has_credentials(self) -> bool:
        return self.username is not None and self.password is not None

    async def authenticate(self, username: str, password: str) -> None:
        self.username = username
        self.password = password
        await self._login()

    async def _login(self) -> str:
        assert self.username is not None and self.password is not None
        response = await self._http.post(
            f"{self.url}/rest/login/{self.username}",
            headers={PASSWORD_HEADER: self.password},
        )
        token = response.headers.get("Authorization")
        if not response.is_success or not token:
            raise AuthenticationError(self.username, response.status_code)
        logger.debug(f"authenticated with GraphDB as '{self.username}'")
        self.session.set(token)
        return token

    async def _token(self) -> Optional[str]:
        if not self.has_credentials:
            return None
        token = self.session.current_token()
        if token is not None:
            return token
        async with self.session.lock:
            token = self.session.current_token()
            if token is None:
                token = await self._login()
        return token

    async def _send(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]],
        body: Optional[str],
        accept: Optional[str],
    ) -> Tuple[httpx.Response, Optional[str]]:
        token = await self._token()
        headers = {"Content-Type": TRIG_CONTENT_TYPE}
        if token is not None:
            headers["Authorization"] = token
        if accept:
            headers["Accept"] = accept
        response = await self._http.request(
            method,
            self.repository_url + path,
            params=params,
            content=body.encode("utf-8") if body is not None else None,
            headers=headers,
        )
        return response, token

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        body: Optional[str] = None,
        accept: Optional[str] = None,
    ) -> httpx.Response:
        """
        Send a request to ``<url>/repositories/<repository><path>``.

        Non-2xx responses are logged and returned; it is up to the
        caller to decide whether they are fatal.
        """
        response, token = await self._send(method, path, params, body, accept)
        if response.status_code in RETRY_STATUS_CODES and self.has_credentials:
            logger.warning(
                f"GraphDB returned {response.status_code} for {method} {path}; "
                "re-authenticating and retrying once"
            )
            self.session.invalidate(token)
            response, _ = await self._send(method, path, params, body, accept)

        if not response.is_success:
            logger.error(
                f"HTTP error {response.status_code} for {method} {response.request.url}"
            )
        return response

    async def query(self, query: str) -> Dict[str, Any]:
        """
        Run a read-only SPARQL query and return the decoded
        ``application/sparql-results+json`` document.

        Raises :class:`httpx.HTTPStatusError` when the store answers
        with an error status, since there are no results to decode.
        """
        response = await self.request(
            "GET", "", params={"query": query}, accept=SPARQL_RESULTS_JSON
        )
        response.raise_for_status()
        return response.json()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "GraphDbClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
