"""
Test suite for dataset_register.fetch and dataset_register.engine.

The query engine and dereferencer are replaced by in-process fakes for
the error-translation tests; the end-to-end tests run the real rdflib
engine against documents served by an httpx mock transport.
"""

import threading

import httpx
import pytest
from rdflib import Graph, URIRef
from rdflib.namespace import DCAT, DCTERMS, FOAF, RDF

from dataset_register import engine as engine_module
from dataset_register.engine import HttpDereferencer, RdflibQueryEngine, rdf_format
from dataset_register.fetch import (
    Fetcher,
    HttpError,
    NoDatasetFoundAtUrl,
    has_dataset_iri,
    translate_error,
)
from dataset_register.settings import SPARQL_LIMIT
from dataset_register.vocabulary import SCHEMA
from tests.fixtures.dataset_fixtures import (
    CATALOG_TURTLE,
    DATASET_1,
    MIXED_CATALOG_TURTLE,
    NO_DATASET_TURTLE,
    SOURCE,
    make_binding,
)


class FakeEngine:
    def __init__(self, rows=(), error=None):
        self.rows = list(rows)
        self.error = error
        self.calls = []

    async def query_bindings(self, query, source):
        self.calls.append((query, source))
        for row in self.rows:
            yield row
        if self.error is not None:
            raise self.error


class FakeDereferencer:
    def __init__(self, graph=None, error=None):
        self.graph = graph
        self.error = error

    async def dereference(self, url):
        if self.error is not None:
            raise self.error
        return self.graph


def serve(status_code=200, text="", content_type="text/turtle"):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code, text=text, headers={"Content-Type": content_type}
        )

    return httpx.MockTransport(handler)


def http_fetcher(**kwargs) -> Fetcher:
    dereferencer = HttpDereferencer(transport=serve(**kwargs))
    return Fetcher(engine=RdflibQueryEngine(dereferencer), dereferencer=dereferencer)


# ----------------------------------------------------------------------
# Error translation
# ----------------------------------------------------------------------


def test_translate_http_status_message():
    error = translate_error(Exception("Could not retrieve x (HTTP status 410):"))
    assert isinstance(error, HttpError)
    assert error.status_code == 410


def test_translate_unknown_error_message():
    error = translate_error(Exception("Request failed: 404: unknown error"))
    assert isinstance(error, HttpError)
    assert error.status_code == 404


def test_translate_httpx_status_error():
    request = httpx.Request("GET", SOURCE)
    response = httpx.Response(403, request=request)
    error = translate_error(
        httpx.HTTPStatusError("forbidden", request=request, response=response)
    )
    assert isinstance(error, HttpError)
    assert error.status_code == 403


def test_translate_other_errors_to_no_dataset():
    error = translate_error(ValueError("unexpected token"))
    assert isinstance(error, NoDatasetFoundAtUrl)
    assert "unexpected token" in str(error)


def test_translate_passes_taxonomy_through():
    original = HttpError("gone", 410)
    assert translate_error(original) is original


def test_rdf_format():
    assert rdf_format("text/turtle; charset=utf-8", SOURCE) == "turtle"
    assert rdf_format("application/ld+json", SOURCE) == "json-ld"
    assert rdf_format(None, "https://example.org/data.nt") == "nt"
    assert rdf_format("text/html", "https://example.org/") == "json-ld"


# ----------------------------------------------------------------------
# Query path
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_fetch_returns_one_graph_per_dataset():
    engine = FakeEngine(rows=[make_binding(DATASET_1)])
    graphs = await Fetcher(engine=engine).fetch(SOURCE)

    assert [g.identifier for g in graphs] == [DATASET_1]
    assert engine.calls[0][1] == SOURCE


@pytest.mark.asyncio
async def test_fetch_without_rows_raises_no_dataset():
    with pytest.raises(NoDatasetFoundAtUrl):
        await Fetcher(engine=FakeEngine(rows=[])).fetch(SOURCE)


@pytest.mark.asyncio
async def test_fetch_translates_engine_errors():
    engine = FakeEngine(error=RuntimeError("Could not retrieve (HTTP status 500)"))
    with pytest.raises(HttpError) as excinfo:
        await Fetcher(engine=engine).fetch(SOURCE)
    assert excinfo.value.status_code == 500


@pytest.mark.asyncio
async def test_fetch_end_to_end():
    """One fully populated dataset yields one dataset, creator and distribution."""
    graphs = await http_fetcher(text=CATALOG_TURTLE).fetch(SOURCE)

    assert len(graphs) == 1
    graph = graphs[0]
    assert graph.identifier == DATASET_1

    datasets = list(graph.subjects(RDF.type, DCAT.Dataset))
    creators = list(graph.subjects(RDF.type, FOAF.Organization))
    distributions = list(graph.subjects(RDF.type, DCAT.Distribution))
    assert datasets == [DATASET_1]
    assert len(creators) == 1
    assert len(distributions) == 1

    assert (DATASET_1, DCTERMS.creator, creators[0]) in graph
    assert (DATASET_1, DCAT.distribution, distributions[0]) in graph
    assert (distributions[0], DCAT.accessURL, URIRef(f"{DATASET_1}.nt")) in graph
    assert len(graph) == 12


@pytest.mark.asyncio
async def test_fetch_end_to_end_is_deterministic():
    fetcher = http_fetcher(text=CATALOG_TURTLE)
    dereferencer = fetcher.dereferencer
    document = await dereferencer.dereference(SOURCE)
    # Same parse, queried twice: identical node ids.
    fixed = Fetcher(
        engine=RdflibQueryEngine(FakeDereferencer(graph=document)),
        dereferencer=FakeDereferencer(graph=document),
    )
    first = await fixed.fetch(SOURCE)
    second = await fixed.fetch(SOURCE)
    assert set(first[0]) == set(second[0])


@pytest.mark.asyncio
async def test_fetch_skips_anonymous_datasets():
    """A blank-node dataset does not spoil the named datasets next to it."""
    graphs = await http_fetcher(text=MIXED_CATALOG_TURTLE).fetch(SOURCE)

    assert [g.identifier for g in graphs] == [DATASET_1]
    assert len(graphs[0]) == 12


@pytest.mark.asyncio
async def test_fetch_query_uses_fetcher_limit(log_messages):
    """The engine is asked for at most ``limit`` rows, the same cap that
    triggers the truncation warning."""
    rows = [make_binding(URIRef(f"{DATASET_1}/{i}")) for i in range(2)]
    engine = FakeEngine(rows=rows)
    graphs = await Fetcher(engine=engine, limit=2).fetch(SOURCE)

    query = engine.calls[0][0]
    assert query.rstrip().endswith("LIMIT 2")
    assert "LIMIT 10000" not in query
    assert len(graphs) == 2
    assert any("reached the SPARQL limit of 2" in m for m in log_messages)


@pytest.mark.asyncio
async def test_fetch_default_limit_matches_setting():
    engine = FakeEngine(rows=[make_binding(DATASET_1)])
    await Fetcher(engine=engine).fetch(SOURCE)
    assert engine.calls[0][0].rstrip().endswith(f"LIMIT {SPARQL_LIMIT}")


@pytest.mark.asyncio
async def test_fetch_document_without_dataset():
    with pytest.raises(NoDatasetFoundAtUrl):
        await http_fetcher(text=NO_DATASET_TURTLE).fetch(SOURCE)


@pytest.mark.asyncio
async def test_fetch_http_error():
    with pytest.raises(HttpError) as excinfo:
        await http_fetcher(status_code=404).fetch(SOURCE)
    assert excinfo.value.status_code == 404


# ----------------------------------------------------------------------
# Dereference path
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_dereference_standardizes_schema_org():
    graph = await http_fetcher(text=CATALOG_TURTLE).dereference(SOURCE)

    assert (DATASET_1, RDF.type, SCHEMA.Dataset) in graph
    assert not any(
        str(term).startswith("http://schema.org/") for triple in graph for term in triple
    )
    assert has_dataset_iri(graph)


@pytest.mark.asyncio
async def test_dereference_http_error_keeps_status():
    with pytest.raises(HttpError) as excinfo:
        await http_fetcher(status_code=410).dereference(SOURCE)
    assert excinfo.value.status_code == 410


@pytest.mark.asyncio
async def test_dereference_parse_error_is_no_dataset():
    with pytest.raises(NoDatasetFoundAtUrl):
        await http_fetcher(text="this is { not turtle").dereference(SOURCE)


@pytest.mark.asyncio
async def test_dereference_without_dataset_iri():
    anonymous = Graph()
    anonymous.parse(
        data="""
        @prefix schema: <https://schema.org/> .
        [] a schema:Dataset ; schema:name "No IRI" .
        """,
        format="turtle",
    )
    fetcher = Fetcher(engine=FakeEngine(), dereferencer=FakeDereferencer(graph=anonymous))
    with pytest.raises(NoDatasetFoundAtUrl):
        await fetcher.dereference(SOURCE)


@pytest.mark.asyncio
async def test_dereference_translates_message_status():
    fetcher = Fetcher(
        engine=FakeEngine(),
        dereferencer=FakeDereferencer(error=OSError("Could not retrieve (HTTP status 403)")),
    )
    with pytest.raises(HttpError) as excinfo:
        await fetcher.dereference(SOURCE)
    assert excinfo.value.status_code == 403


# ----------------------------------------------------------------------
# Event loop
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_parse_and_query_run_in_worker_threads(monkeypatch):
    """Parsing and SPARQL evaluation stay off the event loop thread."""
    threads = {}

    def recording(name, function):
        def wrapper(*args):
            threads[name] = threading.get_ident()
            return function(*args)

        return wrapper

    monkeypatch.setattr(
        engine_module, "parse_document", recording("parse", engine_module.parse_document)
    )
    monkeypatch.setattr(
        engine_module, "select_rows", recording("query", engine_module.select_rows)
    )

    graphs = await http_fetcher(text=CATALOG_TURTLE).fetch(SOURCE)

    assert [g.identifier for g in graphs] == [DATASET_1]
    assert set(threads) == {"parse", "query"}
    assert threading.get_ident() not in threads.values()
