"""Shared fixtures."""

from pathlib import Path

import pytest

from tangen.core.loaders import load_documents, load_graphql_schema, load_openapi_document

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def gql_schema():
    """The pet store GraphQL schema."""
    return load_graphql_schema(FIXTURES / "schema.graphql")


@pytest.fixture
def gql_documents():
    """Operations and fragments against the pet store schema."""
    return load_documents(["operations.graphql"], FIXTURES)


@pytest.fixture
def petstore():
    """The pet store OpenAPI document."""
    return load_openapi_document(FIXTURES / "petstore.yaml")
