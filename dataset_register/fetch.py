"""
dataset_register.fetch
======================

Retrieve dataset descriptions for a registration URL.

Two paths are available:

* :meth:`Fetcher.fetch` – run the select query (capped at the fetcher's
  row limit) against the URL and fold the rows into per-dataset graphs
  (:mod:`dataset_register.transform`).
* :meth:`Fetcher.dereference` – load the document at the URL as-is,
  normalising its schema.org namespace, into a single graph.

Failures raised by the query engine or the HTTP layer are translated
into :class:`HttpError` or :class:`NoDatasetFoundAtUrl` here; callers
never see engine-specific exceptions. Nothing is written to any store.
"""

import re
from typing import List, Optional

import httpx
from loguru import logger
from rdflib import Graph, URIRef
from rdflib.namespace import RDF

from .engine import Dereferencer, HttpDereferencer, QueryEngine, RdflibQueryEngine
from .query import build_select_query
from .settings import SPARQL_LIMIT
from .transform import collect_graphs
from .vocabulary import SCHEMA, standardize_schema_org_prefix


class HttpError(Exception):
    """The source answered with an HTTP error status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class NoDatasetFoundAtUrl(Exception):
    """The source was reachable but contained no usable dataset description."""

    def __init__(self, message: str = ""):
        super().__init__(f"No dataset found at URL: {message}")


_UNKNOWN_ERROR_STATUS = re.compile(r"\b(\d{3}): unknown error")
_HTTP_STATUS = re.compile(r"HTTP status (\d+)")


def translate_error(error: Exception) -> Exception:
    """
    Map an engine or transport exception onto the fetch error taxonomy.

    * :class:`httpx.HTTPStatusError` → :class:`HttpError` with the
      response status.
    * Messages of the form ``"404: unknown error"`` or
      ``"... HTTP status 410 ..."`` → :class:`HttpError` with that status.
    * Anything else → :class:`NoDatasetFoundAtUrl` carrying the message.
    """
    if isinstance(error, (HttpError, NoDatasetFoundAtUrl)):
        return error
    if isinstance(error, httpx.HTTPStatusError):
        return HttpError(str(error), error.response.status_code)

    message = str(error)
    for pattern in (_UNKNOWN_ERROR_STATUS, _HTTP_STATUS):
        match = pattern.search(message)
        if match:
            return HttpError(message, int(match.group(1)))
    return NoDatasetFoundAtUrl(message)


def has_dataset_iri(graph: Graph) -> bool:
    """True if ``graph`` types at least one IRI (not a blank node) as schema:Dataset."""
    return any(
        isinstance(subject, URIRef)
        for subject in graph.subjects(RDF.type, SCHEMA.Dataset)
    )


class Fetcher:
    """
    Query or dereference registration URLs.

    The query engine and the dereferencer are injected; by default an
    in-memory rdflib engine over an httpx dereferencer is used.
    """

    def __init__(
        self,
        engine: Optional[QueryEngine] = None,
        dereferencer: Optional[Dereferencer] = None,
        limit: int = SPARQL_LIMIT,
    ):
        self.dereferencer = dereferencer or HttpDereferencer()
        self.engine = engine or RdflibQueryEngine(self.dereferencer)
        self.limit = limit
        # Shared by the query cap and the truncation check.
        self.query = build_select_query(limit)

    async def fetch(self, url: str) -> List[Graph]:
        """
        Fetch dataset descriptions by executing the SELECT query against
        ``url``, returning one graph per dataset.
        """
        try:
            bindings = self.engine.query_bindings(self.query, url)
            graphs = await collect_graphs(bindings, source=url, limit=self.limit)
        except Exception as e:
            logger.debug(f"query against {url} failed: {e}")
            raise translate_error(e) from e

        if not graphs:
            raise NoDatasetFoundAtUrl(url)
        return graphs

    async def dereference(self, url: str) -> Graph:
        """Fetch the dataset description(s) by dereferencing ``url``."""
        try:
            document = await self.dereferencer.dereference(url)
        except Exception as e:
            logger.debug(f"dereferencing {url} failed: {e}")
            raise translate_error(e) from e

        graph = Graph()
        for triple in standardize_schema_org_prefix(document):
            graph.add(triple)

        if not has_dataset_iri(graph):
            raise NoDatasetFoundAtUrl(url)
        return graph


async def fetch(url: str, fetcher: Optional[Fetcher] = None) -> List[Graph]:
    """Convenience wrapper around :meth:`Fetcher.fetch`."""
    return await (fetcher or Fetcher()).fetch(url)


async def dereference(url: str, fetcher: Optional[Fetcher] = None) -> Graph:
    """Convenience wrapper around :meth:`Fetcher.dereference`."""
    return await (fetcher or Fetcher()).dereference(url)
