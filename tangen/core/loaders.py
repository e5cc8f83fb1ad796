"""Load GraphQL schemas, operation documents and OpenAPI specs.

Local files are read synchronously; remote schemas and specs are fetched
with httpx.AsyncClient so several sources can be fetched concurrently.
"""

import json
import logging
from pathlib import Path
from typing import Any

import httpx
import yaml
from graphql import (
    DocumentNode,
    GraphQLError,
    GraphQLSchema,
    build_client_schema,
    build_schema,
    get_introspection_query,
    parse,
)

from .errors import SchemaParseError, SourceLoadError

logger = logging.getLogger(__name__)

SDL_SUFFIXES = (".graphql", ".graphqls", ".gql")

DEFAULT_TIMEOUT = 30.0


def _read(path: Path) -> str:
    try:
        return path.read_text()
    except OSError as exc:
        raise SourceLoadError(f"Cannot read {path}: {exc}") from exc


def _collect_schema_files(path: Path) -> list[Path]:
    """Collect SDL files from a file or directory path."""
    if path.is_file():
        return [path]
    if not path.is_dir():
        raise SourceLoadError(f"Schema path does not exist: {path}")
    return sorted(p for p in path.rglob("*") if p.suffix in SDL_SUFFIXES)


# =============================================================================
# GraphQL
# =============================================================================


def schema_from_introspection(data: dict[str, Any]) -> GraphQLSchema:
    """Build a schema from an introspection result, with or without the `data` envelope."""
    if "data" in data and isinstance(data["data"], dict):
        data = data["data"]
    if "__schema" not in data:
        raise SchemaParseError("Introspection result has no __schema")
    try:
        return build_client_schema(data)
    except (GraphQLError, TypeError) as exc:
        raise SchemaParseError(f"Invalid introspection result: {exc}") from exc


def load_graphql_schema(path: str | Path) -> GraphQLSchema:
    """Load a schema from an introspection JSON file, an SDL file or a directory of SDL files.

    Raises:
        SourceLoadError: If the path cannot be read.
        SchemaParseError: If the schema is malformed.
    """
    path = Path(path)
    if path.suffix == ".json":
        try:
            data = json.loads(_read(path))
        except json.JSONDecodeError as exc:
            raise SchemaParseError(f"Invalid introspection JSON in {path}: {exc}") from exc
        return schema_from_introspection(data)

    files = _collect_schema_files(path)
    logger.debug("Loading GraphQL SDL from %d file(s) under %s", len(files), path)
    sdl = "\n".join(_read(file) for file in files)
    try:
        return build_schema(sdl)
    except GraphQLError as exc:
        raise SchemaParseError(f"Invalid GraphQL schema {path}: {exc}") from exc


async def fetch_graphql_schema(
    url: str, headers: dict[str, str] | None = None, timeout: float = DEFAULT_TIMEOUT
) -> GraphQLSchema:
    """Introspect a remote GraphQL endpoint."""
    logger.info("Introspecting %s", url)
    request_headers = {"Content-Type": "application/json"}
    request_headers.update(headers or {})
    try:
        async with httpx.AsyncClient(timeout=timeout, headers=request_headers) as client:
            response = await client.post(url, json={"query": get_introspection_query()})
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPError as exc:
        raise SourceLoadError(f"Introspection request to {url} failed: {exc}") from exc
    except ValueError as exc:
        raise SchemaParseError(f"Introspection response from {url} is not JSON") from exc

    if data.get("errors"):
        messages = "; ".join(error.get("message", str(error)) for error in data["errors"])
        raise SchemaParseError(f"Introspection of {url} returned errors: {messages}")
    return schema_from_introspection(data)


def load_documents(patterns: list[str], base_dir: str | Path = ".") -> list[DocumentNode]:
    """Parse every operation document matching the glob patterns.

    Paths are de-duplicated and sorted so output does not depend on
    filesystem order.
    """
    base = Path(base_dir)
    paths: set[Path] = set()
    for pattern in patterns:
        if Path(pattern).is_absolute():
            anchor = Path(Path(pattern).anchor)
            matches = anchor.glob(str(Path(pattern).relative_to(anchor)))
        else:
            matches = base.glob(pattern)
        paths.update(p for p in matches if p.is_file())

    documents = []
    for path in sorted(paths):
        try:
            documents.append(parse(_read(path)))
        except GraphQLError as exc:
            raise SchemaParseError(f"Invalid GraphQL document {path}: {exc}") from exc
    logger.debug("Loaded %d GraphQL document(s)", len(documents))
    return documents


# =============================================================================
# OpenAPI
# =============================================================================


def parse_openapi_text(text: str, source: str) -> dict[str, Any]:
    """Parse JSON or YAML spec text."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SchemaParseError(f"Invalid OpenAPI document {source}: {exc}") from exc
    if not isinstance(data, dict):
        raise SchemaParseError(f"OpenAPI document {source} must be a mapping")
    return data


def load_openapi_document(path: str | Path) -> dict[str, Any]:
    """Load an OpenAPI document from a JSON or YAML file."""
    path = Path(path)
    text = _read(path)
    if path.suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SchemaParseError(f"Invalid OpenAPI document {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise SchemaParseError(f"OpenAPI document {path} must be a mapping")
        return data
    return parse_openapi_text(text, str(path))


async def fetch_openapi_document(
    url: str, headers: dict[str, str] | None = None, timeout: float = DEFAULT_TIMEOUT
) -> dict[str, Any]:
    """Fetch a remote OpenAPI document (JSON or YAML)."""
    logger.info("Fetching OpenAPI spec %s", url)
    try:
        async with httpx.AsyncClient(timeout=timeout, headers=headers or {}) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        raise SourceLoadError(f"Fetching {url} failed: {exc}") from exc
    return parse_openapi_text(response.text, url)
