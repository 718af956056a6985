"""
dataset_register.graphdb.registrations
======================================

Registration records and the allowed domain names list, both kept in
dedicated named graphs of the GraphDB repository.
"""

import datetime as _dt
from typing import List

from loguru import logger
from rdflib import Literal, Namespace, URIRef
from rdflib.namespace import RDF, XSD

from ..registration import Registration, format_datetime
from ..settings import (
    ALLOWED_DOMAIN_NAME_PREDICATE,
    ALLOWED_DOMAIN_NAMES_GRAPH_IRI,
    REGISTRATIONS_GRAPH_IRI,
)
from .client import GraphDbClient, Quad, to_trig

# The registration graph predates the switch to https://schema.org/ and
# keeps using the http:// form.
SCHEMA_HTTP = Namespace("http://schema.org/")
# Currently the only vocabulary that we support.
SUPPORTED_ENCODING = URIRef("http://schema.org")


def _datetime_literal(value: _dt.datetime) -> Literal:
    # normalize=False keeps the canonical lexical form, which the
    # "read before" filter compares as a string.
    return Literal(format_datetime(value), datatype=XSD.dateTime, normalize=False)


def registration_quads(
    registration: Registration, graph_iri: str = REGISTRATIONS_GRAPH_IRI
) -> List[Quad]:
    """All statements describing ``registration`` in the registration graph."""
    graph = URIRef(graph_iri)
    subject = URIRef(registration.url)

    quads: List[Quad] = [
        (subject, SCHEMA_HTTP.datePosted, _datetime_literal(registration.date_posted), graph),
        (subject, RDF.type, SCHEMA_HTTP.EntryPoint, graph),
        (subject, SCHEMA_HTTP.encoding, SUPPORTED_ENCODING, graph),
    ]
    for dataset_iri in registration.datasets:
        dataset = URIRef(dataset_iri)
        quads.append((subject, SCHEMA_HTTP.about, dataset, graph))
        quads.append((dataset, RDF.type, SCHEMA_HTTP.Dataset, graph))
        if registration.date_read is not None:
            quads.append(
                (dataset, SCHEMA_HTTP.dateRead, _datetime_literal(registration.date_read), graph)
            )

    if registration.date_read is not None:
        quads.append(
            (subject, SCHEMA_HTTP.dateRead, _datetime_literal(registration.date_read), graph)
        )
    if registration.status_code is not None:
        quads.append(
            (
                subject,
                SCHEMA_HTTP.status,
                Literal(str(registration.status_code), datatype=XSD.integer),
                graph,
            )
        )
    if registration.valid_until is not None:
        quads.append(
            (subject, SCHEMA_HTTP.validUntil, _datetime_literal(registration.valid_until), graph)
        )
    return quads


class GraphDbRegistrationStore:
    """Persist :class:`Registration` records in the registration graph."""

    def __init__(self, client: GraphDbClient, graph_iri: str = REGISTRATIONS_GRAPH_IRI):
        self.client = client
        self.graph_iri = graph_iri

    async def linked_datasets(self, url: str) -> List[str]:
        """Dataset IRIs the stored registration for ``url`` is about."""
        result = await self.client.query(
            f"""
      PREFIX schema: <{SCHEMA_HTTP}>
      SELECT DISTINCT ?dataset WHERE {{
        GRAPH <{self.graph_iri}> {{ <{url}> schema:about ?dataset . }}
      }}"""
        )
        return [binding["dataset"]["value"] for binding in result["results"]["bindings"]]

    async def store(self, registration: Registration) -> None:
        """
        Replace everything known about ``registration.url``.

        In the registration graph, delete all statements whose subject is
        the URL, a dataset it was previously about or a dataset it is now
        about, then insert the fresh ones.
        """
        body = to_trig(registration_quads(registration, self.graph_iri))
        previous = await self.linked_datasets(registration.url)
        subjects = dict.fromkeys([registration.url, *previous, *registration.datasets])
        logger.debug(f"storing registration {registration.url} ({len(subjects)} subjects)")
        for subject in subjects:
            await self.client.request(
                "DELETE",
                "/statements",
                params={
                    "subj": f"<{subject}>",
                    "context": f"<{self.graph_iri}>",
                },
            )
        await self.client.request("POST", "/statements", body=body)

    async def find_registrations_read_before(
        self, date: _dt.datetime
    ) -> List[Registration]:
        """
        Registrations whose ``dateRead`` is earlier than ``date``.

        The datetimes are compared as strings (``STR(?dateRead)``), a
        workaround for https://github.com/netwerk-digitaal-erfgoed/register/issues/45.
        This is only chronological because every stored timestamp is
        written in the form produced by
        :func:`dataset_register.registration.format_datetime`.
        """
        result = await self.client.query(
            f"""
      PREFIX schema: <{SCHEMA_HTTP}>
      SELECT ?s ?datePosted ?validUntil WHERE {{
        GRAPH <{self.graph_iri}> {{
          ?s a schema:EntryPoint ;
            schema:datePosted ?datePosted ;
            schema:dateRead ?dateRead .
          OPTIONAL {{ ?s schema:validUntil ?validUntil . }}
          FILTER (STR(?dateRead) < "{format_datetime(date)}")
        }}
      }} GROUP BY ?s ?datePosted ?validUntil"""
        )

        return [
            Registration(
                url=binding["s"]["value"],
                date_posted=binding["datePosted"]["value"],
                valid_until=(
                    binding["validUntil"]["value"] if "validUntil" in binding else None
                ),
            )
            for binding in result["results"]["bindings"]
        ]


class GraphDbAllowedRegistrationDomainStore:
    """Membership queries against the allowed domain names graph."""

    def __init__(
        self,
        client: GraphDbClient,
        allowed_domain_names_graph: str = ALLOWED_DOMAIN_NAMES_GRAPH_IRI,
    ):
        self.client = client
        self.allowed_domain_names_graph = allowed_domain_names_graph

    async def contains(self, *domain_names: str) -> bool:
        if not domain_names:
            return False
        values = " ".join(Literal(name).n3() for name in domain_names)
        result = await self.client.query(
            f"""
      SELECT * WHERE {{
        GRAPH <{self.allowed_domain_names_graph}> {{
          ?s <{ALLOWED_DOMAIN_NAME_PREDICATE}> ?domainNames .
          VALUES ?domainNames {{ {values} }}
        }}
      }}"""
        )
        return len(result["results"]["bindings"]) > 0
