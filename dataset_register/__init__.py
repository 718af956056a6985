"""
Public API for the dataset_register package.

Most users will interact with:

* :class:`Fetcher` (or :func:`fetch` / :func:`dereference`) to harvest
  dataset descriptions from a registration URL.
* :class:`Registration` to record the outcome of a harvest.
* The GraphDB stores in :mod:`dataset_register.graphdb` to persist
  both.
"""

from .dataset import extract_iri, extract_iris
from .engine import HttpDereferencer, RdflibQueryEngine
from .fetch import (
    Fetcher,
    HttpError,
    NoDatasetFoundAtUrl,
    dereference,
    fetch,
    translate_error,
)
from .query import SELECT_QUERY, build_select_query
from .registration import Registration, format_datetime
from .settings import SPARQL_LIMIT
from .transform import GraphCollector, bindings_to_quads, collect_graphs, node_id
from .version import __version__ as __version__

__all__ = [
    # dataset
    "extract_iri",
    "extract_iris",
    # engine
    "HttpDereferencer",
    "RdflibQueryEngine",
    # fetch
    "Fetcher",
    "HttpError",
    "NoDatasetFoundAtUrl",
    "dereference",
    "fetch",
    "translate_error",
    # query
    "SELECT_QUERY",
    "build_select_query",
    # registration
    "Registration",
    "format_datetime",
    # settings
    "SPARQL_LIMIT",
    # transform
    "GraphCollector",
    "bindings_to_quads",
    "collect_graphs",
    "node_id",
    # version
    "__version__",
]
