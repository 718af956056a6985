"""
dataset_register.dataset
========================

Helpers for locating a dataset's IRI inside its description graph, and
the interface of stores that persist those graphs.
"""

from typing import Dict, Iterable, Optional, Protocol

from loguru import logger
from rdflib import Graph, URIRef
from rdflib.namespace import RDF

from .vocabulary import DATASET_TYPE, SCHEMA

# dcat:Dataset after transformation, schema:Dataset for dereferenced documents.
DATASET_TYPES = (DATASET_TYPE, SCHEMA.Dataset)


def extract_iri(graph: Graph) -> Optional[URIRef]:
    """Return the IRI of the first dataset typed in ``graph``, if any."""
    for dataset_type in DATASET_TYPES:
        for subject in graph.subjects(RDF.type, dataset_type):
            if isinstance(subject, URIRef):
                return subject
    return None


def extract_iris(graphs: Iterable[Graph]) -> Dict[URIRef, Graph]:
    """
    Key each graph by its dataset IRI.

    Graphs without a dataset IRI are skipped (and logged); they cannot
    be addressed as a named graph.
    """
    out: Dict[URIRef, Graph] = {}
    for graph in graphs:
        iri = extract_iri(graph)
        if iri is None:
            logger.warning(f"skipping graph {graph.identifier}: no dataset IRI")
            continue
        out[iri] = graph
    return out


class DatasetStore(Protocol):
    async def store(self, graphs: Iterable[Graph]) -> object: ...
