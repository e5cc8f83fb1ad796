"""Configuration models and loading.

A config file (YAML or JSON) lists the output directory and one entry per
source:

    output: src/generated
    sources:
      - name: api
        type: graphql
        schema:
          url: https://example.com/graphql
        documents: ["src/**/*.graphql"]
        validator: zod
        scalars:
          DateTime: z.iso.datetime()
      - name: petstore
        type: openapi
        spec: ./openapi.yaml
        include: ["/pets/**"]
        validator: valibot
"""

import json
import re
from pathlib import Path
from typing import Annotated, Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .emitters import SUPPORTED_VALIDATORS
from .errors import ConfigError

_SOURCE_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class SourceConfig(BaseModel):
    """Settings shared by every source type."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: str
    validator: str = "zod"
    scalars: dict[str, str] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)
    # Query field names (GraphQL) or operationIds (OpenAPI) synced on demand
    on_demand: list[str] = Field(default_factory=list)
    standard_schema: bool = False

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not _SOURCE_NAME_RE.match(value):
            raise ValueError("source name may only contain letters, digits, '-' and '_'")
        return value

    @field_validator("validator")
    @classmethod
    def _check_validator(cls, value: str) -> str:
        if value not in SUPPORTED_VALIDATORS:
            raise ValueError(
                f"Unknown validator library: {value}. "
                f"Supported libraries: {', '.join(SUPPORTED_VALIDATORS)}"
            )
        return value


class GraphQLSchemaLocation(BaseModel):
    """Where a GraphQL schema comes from: a local file or an endpoint."""

    model_config = ConfigDict(extra="forbid")

    file: str | None = None
    url: str | None = None

    @model_validator(mode="after")
    def _exactly_one(self):
        if bool(self.file) == bool(self.url):
            raise ValueError("schema needs exactly one of 'file' or 'url'")
        return self


class GraphQLSourceConfig(SourceConfig):
    type: Literal["graphql"]
    schema_location: GraphQLSchemaLocation = Field(alias="schema")
    documents: list[str] = Field(default_factory=list)


class OpenAPISourceConfig(SourceConfig):
    type: Literal["openapi"]
    spec: str
    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)

    @property
    def is_remote(self) -> bool:
        return self.spec.startswith(("http://", "https://"))


Source = Annotated[Union[GraphQLSourceConfig, OpenAPISourceConfig], Field(discriminator="type")]


class TangenConfig(BaseModel):
    """Top-level configuration."""

    model_config = ConfigDict(extra="forbid")

    output: str = "src/generated"
    sources: list[Source]
    # Directory relative paths are resolved against (the config file's)
    base_dir: Path = Field(default=Path("."), exclude=True)

    @model_validator(mode="after")
    def _unique_sources(self):
        if not self.sources:
            raise ValueError("at least one source is required")
        seen: set[str] = set()
        for source in self.sources:
            if source.name in seen:
                raise ValueError(f'duplicate source name "{source.name}"')
            seen.add(source.name)
        return self

    def resolve_path(self, value: str) -> Path:
        """Resolve a config-relative path."""
        path = Path(value)
        return path if path.is_absolute() else self.base_dir / path

    @property
    def output_dir(self) -> Path:
        return self.resolve_path(self.output)


def load_config(path: str | Path) -> TangenConfig:
    """Load and validate a YAML or JSON config file.

    Raises:
        ConfigError: If the file is missing, unparsable or invalid.
    """
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc

    try:
        data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot parse config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    try:
        return TangenConfig.model_validate({**data, "base_dir": path.parent})
    except ValidationError as exc:
        raise ConfigError(f"Invalid config file {path}:\n{exc}") from exc
