"""
dataset_register.graphdb.datasets
=================================

Write harvested dataset graphs to GraphDB, one named graph per dataset.
"""

from typing import Iterable, List

import httpx
from loguru import logger
from rdflib import Graph, URIRef

from ..dataset import extract_iris
from .client import GraphDbClient, to_trig


class GraphDbDatasetStore:
    """
    Store dataset descriptions, one named graph per dataset.

    Uses GraphDB's optimised graph replacement
    (https://graphdb.ontotext.com/documentation/standard/replace-graph.html):
    a ``PUT`` on the graph store endpoint drops the named graph and
    loads the new content in one request.
    """

    def __init__(self, client: GraphDbClient):
        self.client = client

    async def store(self, graphs: Iterable[Graph]) -> List[httpx.Response]:
        responses = []
        # One request at a time: wait for each response before sending the
        # next so GraphDB does not run out of memory.
        for iri, graph in extract_iris(graphs).items():
            responses.append(await self.store_dataset(graph, iri))
        return responses

    async def store_dataset(self, graph: Graph, graph_iri: URIRef) -> httpx.Response:
        logger.debug(f"replacing graph <{graph_iri}> ({len(graph)} triples)")
        body = to_trig((s, p, o, graph_iri) for s, p, o in graph)
        return await self.client.request(
            "PUT",
            "/rdf-graphs/service",
            params={"graph": str(graph_iri)},
            body=body,
        )
