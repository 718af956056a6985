"""
dataset_register.graphdb
========================

Persist harvested dataset descriptions and registration metadata in a
GraphDB repository through its REST API.

Core entry points
-----------------

* :class:`GraphDbClient` – authenticated REST access (bearer token,
  single retry on expired tokens), plus :meth:`GraphDbClient.query` for
  SPARQL SELECT.
* :class:`GraphDbDatasetStore` – replace each dataset's named graph
  wholesale, one dataset at a time.
* :class:`GraphDbRegistrationStore` – delete-then-insert registration
  records and find registrations due for re-harvesting.
* :class:`GraphDbAllowedRegistrationDomainStore` – domain allowlist
  membership.
"""

from .client import (
    AuthenticationError,
    GraphDbClient,
    GraphDbSettings,
    TokenSession,
    to_trig,
)
from .datasets import GraphDbDatasetStore
from .registrations import (
    GraphDbAllowedRegistrationDomainStore,
    GraphDbRegistrationStore,
    registration_quads,
)

__all__ = [
    # client
    "AuthenticationError",
    "GraphDbClient",
    "GraphDbSettings",
    "TokenSession",
    "to_trig",
    # datasets
    "GraphDbDatasetStore",
    # registrations
    "GraphDbAllowedRegistrationDomainStore",
    "GraphDbRegistrationStore",
    "registration_quads",
]
