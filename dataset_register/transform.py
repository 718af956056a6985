"""
dataset_register.transform
==========================

Fold query result rows (bindings) into one RDF graph per dataset.

Each binding is turned into quads whose graph label is always the
dataset IRI, so statements about dataset A can never land in the graph
of dataset B. Quads are collected in an :class:`rdflib.Dataset` (which
deduplicates them) and partitioned into per-dataset graphs once the
binding stream is exhausted.

Blank nodes
-----------
Creator and distribution nodes are usually blank nodes in the source
document. Their labels are only meaningful inside one parse of one
source, so they are skolemised: the *scoped identifier*
(``<source>#<label>``) is hashed by :func:`node_id` into an opaque local
id. The same scoped identifier always yields the same node, which makes
rows that repeat a creator or distribution collapse onto one node.
"""

import hashlib
from typing import AsyncIterable, Dict, Iterable, List, Mapping, Tuple

from loguru import logger
from rdflib import BNode, Dataset, Graph, URIRef
from rdflib.namespace import RDF
from rdflib.term import Identifier, Node

from .settings import SPARQL_LIMIT
from .vocabulary import (
    CREATOR,
    CREATOR_LINK,
    CREATOR_MAPPING,
    CREATOR_TYPE,
    DATASET,
    DATASET_MAPPING,
    DATASET_TYPE,
    DISTRIBUTION,
    DISTRIBUTION_LINK,
    DISTRIBUTION_MAPPING,
    DISTRIBUTION_TYPE,
)

Binding = Mapping[str, Node]
Quad = Tuple[Node, URIRef, Node, URIRef]


def node_id(scoped_identifier: str) -> str:
    """
    Derive a local blank-node id from a source-scoped identifier.

    The id is ``"n"`` followed by the SHA-256 hex digest of the
    identifier: deterministic, free of characters that are unsafe in a
    blank-node label, and collision-free for all practical purposes.
    """
    digest = hashlib.sha256(scoped_identifier.encode("utf-8")).hexdigest()
    return f"n{digest}"


def scoped_identifier(term: Node, source: str = "") -> str:
    """Identify ``term`` relative to the source it was read from."""
    if isinstance(term, BNode):
        return f"{source}#{term}"
    return str(term)


def skolemize(term: Node, source: str = "") -> Identifier:
    """
    Map a creator/distribution term onto its node in the output graph.

    Blank nodes become deterministic blank nodes (see :func:`node_id`);
    IRI-identified nodes keep their IRI.
    """
    if isinstance(term, URIRef):
        return term
    return BNode(node_id(scoped_identifier(term, source)))


def _mapped_quads(
    subject: Identifier,
    binding: Binding,
    mapping: Mapping[str, URIRef],
    graph_iri: URIRef,
) -> List[Quad]:
    return [
        (subject, predicate, binding[variable], graph_iri)
        for variable, predicate in mapping.items()
        if binding.get(variable) is not None
    ]


def bindings_to_quads(binding: Binding, source: str = "") -> List[Quad]:
    """
    Convert one result row into quads in the dataset's own graph.

    Raises :class:`ValueError` if the row has no IRI bound to
    ``?dataset``; the select query filters such rows out.
    """
    dataset_iri = binding.get(DATASET)
    if not isinstance(dataset_iri, URIRef):
        raise ValueError(f"Binding has no dataset IRI: {dict(binding)!r}")

    quads: List[Quad] = [(dataset_iri, RDF.type, DATASET_TYPE, dataset_iri)]
    quads.extend(_mapped_quads(dataset_iri, binding, DATASET_MAPPING, dataset_iri))

    for variable, link, node_type, mapping in (
        (CREATOR, CREATOR_LINK, CREATOR_TYPE, CREATOR_MAPPING),
        (DISTRIBUTION, DISTRIBUTION_LINK, DISTRIBUTION_TYPE, DISTRIBUTION_MAPPING),
    ):
        term = binding.get(variable)
        if term is None:
            continue
        node = skolemize(term, source)
        quads.append((dataset_iri, link, node, dataset_iri))
        quads.append((node, RDF.type, node_type, dataset_iri))
        quads.extend(_mapped_quads(node, binding, mapping, dataset_iri))

    return quads


class GraphCollector:
    """
    One-shot accumulator: feed it bindings, then take the graphs.

    ``count`` is the number of rows consumed. When it equals ``limit``
    the result set was probably cut off by the query's ``LIMIT`` and
    :attr:`truncated` is set; this is reported as a warning, not an
    error.
    """

    def __init__(self, source: str = "", limit: int = SPARQL_LIMIT):
        self.source = source
        self.limit = limit
        self.count = 0
        self._store = Dataset()
        # Dataset IRIs in the order they were first seen.
        self._datasets: Dict[URIRef, None] = {}

    def add(self, binding: Binding) -> None:
        self.count += 1
        for quad in bindings_to_quads(binding, self.source):
            self._store.add(quad)
            self._datasets.setdefault(quad[3], None)

    def extend(self, bindings: Iterable[Binding]) -> None:
        for binding in bindings:
            self.add(binding)

    @property
    def truncated(self) -> bool:
        return self.count == self.limit

    def graphs(self) -> List[Graph]:
        """Partition the collected quads into one graph per dataset IRI."""
        if self.truncated:
            logger.warning(
                f"SPARQL query result for {self.source} reached the SPARQL limit of {self.limit}"
            )

        partitioned: List[Graph] = []
        for iri in self._datasets:
            graph = Graph(identifier=iri)
            for triple in self._store.graph(iri):
                graph.add(triple)
            partitioned.append(graph)
        logger.debug(
            f"collected {len(partitioned)} dataset graph(s) from {self.count} row(s)"
        )
        return partitioned


async def collect_graphs(
    bindings: AsyncIterable[Binding],
    source: str = "",
    limit: int = SPARQL_LIMIT,
) -> List[Graph]:
    """Drain an async binding stream and return the per-dataset graphs."""
    collector = GraphCollector(source=source, limit=limit)
    async for binding in bindings:
        collector.add(binding)
    return collector.graphs()
