"""
dataset_register.settings
=========================

Constants shared across the harvester and the GraphDB stores, plus the
names of the environment variables used to configure a store client.
"""

# ──────────────────────────────────────────────────────────────────────────
# Query
# ──────────────────────────────────────────────────────────────────────────

# Hard cap on result rows; the transformer compares its row count against
# this value to detect truncated result sets.
SPARQL_LIMIT = 10000

# ──────────────────────────────────────────────────────────────────────────
# Graphs
# ──────────────────────────────────────────────────────────────────────────

REGISTRATIONS_GRAPH_IRI = "https://demo.netwerkdigitaalerfgoed.nl/registry/registrations"
ALLOWED_DOMAIN_NAMES_GRAPH_IRI = (
    "https://data.netwerkdigitaalerfgoed.nl/registry/allowed_domain_names"
)
ALLOWED_DOMAIN_NAME_PREDICATE = (
    "https://data.netwerkdigitaalerfgoed.nl/allowed_domain_names/def/domain_name"
)

# ──────────────────────────────────────────────────────────────────────────
# GraphDB protocol
# ──────────────────────────────────────────────────────────────────────────

TRIG_CONTENT_TYPE = "application/x-trig"
SPARQL_RESULTS_JSON = "application/sparql-results+json"
PASSWORD_HEADER = "X-Graphdb-Password"

# 401: token expired. 409: "Auth token hash mismatch", returned after
# GraphDB has restarted and no longer recognises previously issued tokens.
RETRY_STATUS_CODES = frozenset({401, 409})

DEFAULT_TIMEOUT = 30.0

# ──────────────────────────────────────────────────────────────────────────
# Environment
# ──────────────────────────────────────────────────────────────────────────

ENV_GRAPHDB_URL = "GRAPHDB_URL"
ENV_GRAPHDB_REPOSITORY = "GRAPHDB_REPOSITORY"
ENV_GRAPHDB_USERNAME = "GRAPHDB_USERNAME"
ENV_GRAPHDB_PASSWORD = "GRAPHDB_PASSWORD"
