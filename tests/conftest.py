try:
    from dotenv import load_dotenv
    from pathlib import Path

    # Load test-time environment variables (e.g. GraphDB connection settings)
    load_dotenv(Path(__file__).with_name(".env"), override=True)
except ImportError:
    # It is safe to run tests without python-dotenv; live GraphDB tests
    # skip themselves when GRAPHDB_URL is not set.
    pass

# Register shared fixtures from the `tests/fixtures` package.
# - dataset_fixtures: sample bindings and source documents.
# - graphdb_fixtures: in-memory GraphDB fake and an authenticated client.
pytest_plugins = [
    "tests.fixtures.dataset_fixtures",
    "tests.fixtures.graphdb_fixtures",
]
