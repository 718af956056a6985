"""
dataset_register.engine
=======================

Default collaborators for :class:`dataset_register.fetch.Fetcher`:

* :class:`HttpDereferencer` – GET a URL with RDF content negotiation and
  parse the response into an :class:`rdflib.Graph`.
* :class:`RdflibQueryEngine` – dereference the source, normalise its
  schema.org namespace and evaluate a SELECT query in memory, yielding
  bindings one at a time.

Both are duck-typed against the :class:`Dereferencer` and
:class:`QueryEngine` protocols so tests (or a remote engine) can be
swapped in.
"""

import asyncio
from typing import AsyncIterator, Dict, List, Optional, Protocol

import httpx
from loguru import logger
from rdflib import Graph
from rdflib.term import Node
from rdflib.util import guess_format

from .settings import DEFAULT_TIMEOUT
from .vocabulary import standardize_schema_org_prefix

RDF_ACCEPT = ", ".join(
    [
        "application/ld+json",
        "text/turtle;q=0.9",
        "application/n-triples;q=0.8",
        "application/rdf+xml;q=0.7",
        "*/*;q=0.1",
    ]
)

MEDIA_TYPE_FORMATS: Dict[str, str] = {
    "application/ld+json": "json-ld",
    "application/json": "json-ld",
    "text/turtle": "turtle",
    "application/x-turtle": "turtle",
    "text/n3": "n3",
    "application/n-triples": "nt",
    "application/rdf+xml": "xml",
}


class Dereferencer(Protocol):
    async def dereference(self, url: str) -> Graph: ...


class QueryEngine(Protocol):
    def query_bindings(self, query: str, source: str) -> AsyncIterator[Dict[str, Node]]: ...


def rdf_format(content_type: Optional[str], url: str) -> str:
    """
    Pick an rdflib parser name from a ``Content-Type`` header, falling
    back to the URL's file extension and finally to JSON-LD.
    """
    if content_type:
        media_type = content_type.split(";", 1)[0].strip().lower()
        if media_type in MEDIA_TYPE_FORMATS:
            return MEDIA_TYPE_FORMATS[media_type]
    return guess_format(url) or "json-ld"


def parse_document(text: str, fmt: str, public_id: str) -> Graph:
    graph = Graph()
    graph.parse(data=text, format=fmt, publicID=public_id)
    return graph


def select_rows(document: Graph, query: str) -> List[Dict[str, Node]]:
    """Normalise ``document`` and evaluate ``query``, dropping unbound variables."""
    graph = Graph()
    for triple in standardize_schema_org_prefix(document):
        graph.add(triple)

    result = graph.query(query)
    return [
        {str(variable): term for variable, term in row.items() if term is not None}
        for row in result.bindings
    ]


class HttpDereferencer:
    """Fetch and parse an RDF document over HTTP."""

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.transport = transport
        self.timeout = timeout

    async def dereference(self, url: str) -> Graph:
        async with httpx.AsyncClient(
            transport=self.transport, timeout=self.timeout, follow_redirects=True
        ) as client:
            response = await client.get(url, headers={"Accept": RDF_ACCEPT})
            response.raise_for_status()

        fmt = rdf_format(response.headers.get("content-type"), url)
        logger.debug(f"parsing {url} as {fmt}")
        # Parsing (and JSON-LD context loading) blocks, so run it off the loop.
        return await asyncio.to_thread(parse_document, response.text, fmt, str(response.url))


class RdflibQueryEngine:
    """
    Evaluate a SELECT query against a single dereferenced source.

    The whole document is loaded into memory and queried in a worker
    thread; bindings are then yielded one row at a time, with unbound
    variables left out of the row.
    """

    def __init__(self, dereferencer: Optional[Dereferencer] = None):
        self.dereferencer = dereferencer or HttpDereferencer()

    async def query_bindings(
        self, query: str, source: str
    ) -> AsyncIterator[Dict[str, Node]]:
        document = await self.dereferencer.dereference(source)
        rows = await asyncio.to_thread(select_rows, document, query)
        for row in rows:
            yield row
