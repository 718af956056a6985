"""
dataset_register.vocabulary
===========================

Source and target vocabularies, and the tables that map query variables
(schema.org side) to DCAT / Dublin Core / FOAF / OWL predicates.

The tables are plain dicts so iteration order is insertion order; this
keeps quad generation reproducible in tests even though the resulting
graphs are sets.
"""

from typing import Dict

from rdflib import Namespace, URIRef
from rdflib.namespace import DCAT, DCTERMS, FOAF, OWL

# Canonical schema.org namespace; documents using the legacy ``http://``
# form are rewritten to this one before they are queried.
SCHEMA = Namespace("https://schema.org/")
SCHEMA_LEGACY = Namespace("http://schema.org/")

DATASET_TYPE = DCAT.Dataset
CREATOR_TYPE = FOAF.Organization
DISTRIBUTION_TYPE = DCAT.Distribution

CREATOR_LINK = DCTERMS.creator
DISTRIBUTION_LINK = DCAT.distribution

# Variable names, without the leading "?".
DATASET = "dataset"
CREATOR = "creator"
DISTRIBUTION = "distribution"

# https://www.w3.org/TR/vocab-dcat-2/#Class:Dataset
DATASET_MAPPING: Dict[str, URIRef] = {
    "identifier": DCTERMS.identifier,
    "name": DCTERMS.title,
    "alternateName": DCTERMS.alternative,
    "description": DCTERMS.description,
    "license": DCTERMS.license,
    "dateCreated": DCTERMS.created,
    "datePublished": DCTERMS.issued,
    "dateModified": DCTERMS.modified,
    "language": DCTERMS.language,
    "source": DCTERMS.source,
    "keyword": DCAT.keyword,
    "mainEntityOfPage": DCAT.landingPage,
    "version": OWL.versionInfo,
}

CREATOR_MAPPING: Dict[str, URIRef] = {
    "creator_name": FOAF.name,
    "creator_email": FOAF.mbox,
    "creator_url": FOAF.workplaceHomepage,
    "creator_sameAs": OWL.sameAs,
}

# https://www.w3.org/TR/vocab-dcat-2/#Class:Distribution
DISTRIBUTION_MAPPING: Dict[str, URIRef] = {
    "distribution_url": DCAT.accessURL,
    "distribution_mediaType": DCAT.mediaType,
    "distribution_format": DCTERMS.format,
    "distribution_datePublished": DCTERMS.issued,
    "distribution_dateModified": DCTERMS.modified,
    "distribution_description": DCTERMS.description,
    "distribution_language": DCTERMS.language,
    "distribution_license": DCTERMS.license,
    "distribution_name": DCTERMS.title,
    "distribution_size": DCAT.byteSize,
}


def standardize_schema_org(term):
    """Rewrite a legacy ``http://schema.org/`` IRI to its canonical form."""
    if isinstance(term, URIRef) and term.startswith(SCHEMA_LEGACY):
        return URIRef(SCHEMA + term[len(SCHEMA_LEGACY) :])
    return term


def standardize_schema_org_prefix(triples):
    """Single normalisation pass over a triple stream."""
    for s, p, o in triples:
        yield (
            standardize_schema_org(s),
            standardize_schema_org(p),
            standardize_schema_org(o),
        )
