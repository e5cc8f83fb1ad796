"""Schema generation pipeline.

For every configured source: load -> parse to IR -> pre-hooks -> name
uniqueness check -> emit -> post-hooks -> write `{output}/{source}/schema.ts`.

Sources are loaded concurrently (remote fetches overlap) and generated
independently: a fatal error in one source is logged and recorded on its
GenerationResult while the remaining sources still generate.

Example:
    config = load_config("tangen.yaml")
    results = SchemaGenerator(config).generate()
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from graphql import DocumentNode, GraphQLSchema, get_named_type

from .analysis import (
    analyze_graphql_query_capabilities,
    analyze_query_parameters,
    on_demand_sync_warning,
)
from .config import GraphQLSourceConfig, OpenAPISourceConfig, SourceConfig, TangenConfig
from .emitters import EmitterOptions, get_emitter
from .errors import TangenError
from .graphql_parser import GraphQLSchemaParser
from .hooks import HookRunner
from .ir import SchemaIRResult
from .loaders import (
    DEFAULT_TIMEOUT,
    fetch_graphql_schema,
    fetch_openapi_document,
    load_documents,
    load_graphql_schema,
    load_openapi_document,
)
from .openapi_parser import OpenAPISchemaParser
from .utils import ensure_unique_names

logger = logging.getLogger(__name__)

SCHEMA_FILENAME = "schema.ts"


@dataclass
class LoadedSource:
    """In-memory inputs for one source."""
    schema: GraphQLSchema | None = None
    documents: list[DocumentNode] = field(default_factory=list)
    document: dict[str, Any] | None = None


@dataclass
class GenerationResult:
    """Outcome of generating one source."""
    source: str
    output_file: Path | None = None
    schema_count: int = 0
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SchemaGenerator:
    """Runs the generation pipeline for every source in a config."""

    def __init__(
        self,
        config: TangenConfig,
        hooks: HookRunner | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize the generator.

        Args:
            config: Validated configuration.
            hooks: Optional pre/post generation hooks.
            timeout: HTTP timeout in seconds for remote sources.
        """
        self.config = config
        self.hooks = hooks or HookRunner()
        self.timeout = timeout

    def generate(self) -> list[GenerationResult]:
        """Generate every source and return one result per source."""
        return asyncio.run(self.generate_async())

    async def generate_async(self) -> list[GenerationResult]:
        loaded = await asyncio.gather(
            *(self.load_source(source) for source in self.config.sources),
            return_exceptions=True,
        )
        results = []
        for source, outcome in zip(self.config.sources, loaded):
            if isinstance(outcome, TangenError):
                logger.error("Source %s failed to load: %s", source.name, outcome)
                results.append(GenerationResult(source=source.name, error=str(outcome)))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(self.generate_source(source, outcome))
        return results

    # =========================================================================
    # Loading
    # =========================================================================

    async def load_source(self, source: SourceConfig) -> LoadedSource:
        """Load the schema/spec (and documents) for a source."""
        if isinstance(source, GraphQLSourceConfig):
            location = source.schema_location
            if location.url:
                schema = await fetch_graphql_schema(location.url, source.headers, self.timeout)
            else:
                schema = load_graphql_schema(self.config.resolve_path(location.file))
            documents = load_documents(source.documents, self.config.base_dir)
            return LoadedSource(schema=schema, documents=documents)
        if isinstance(source, OpenAPISourceConfig):
            if source.is_remote:
                document = await fetch_openapi_document(source.spec, source.headers, self.timeout)
            else:
                document = load_openapi_document(self.config.resolve_path(source.spec))
            return LoadedSource(document=document)
        raise TypeError(f"Unsupported source type: {type(source).__name__}")

    # =========================================================================
    # Generation
    # =========================================================================

    def build_ir(self, source: SourceConfig, loaded: LoadedSource) -> SchemaIRResult:
        """Parse a loaded source into IR, adding on-demand capability warnings."""
        if isinstance(source, GraphQLSourceConfig):
            result = GraphQLSchemaParser(
                loaded.schema, loaded.documents, source.scalars, source.validator
            ).parse()
            result.warnings.extend(self._graphql_on_demand_warnings(source, loaded.schema))
            return result
        parser = OpenAPISchemaParser(
            loaded.document,
            source.scalars,
            source.validator,
            source.include,
            source.exclude,
        )
        result = parser.parse()
        result.warnings.extend(self._openapi_on_demand_warnings(source, parser))
        return result

    def generate_source(self, source: SourceConfig, loaded: LoadedSource) -> GenerationResult:
        """Parse, emit and write one source; TangenErrors and write failures are recorded, not raised."""
        result = GenerationResult(source=source.name)
        try:
            ir = self.build_ir(source, loaded)
            ir = self.hooks.run_pre_hooks(ir)
            ensure_unique_names(ir.schemas)

            emitter = get_emitter(source.validator)
            emitted = emitter.emit(
                ir.schemas,
                EmitterOptions(standard_schema=source.standard_schema),
            )
            content = self.hooks.run_post_hooks(SCHEMA_FILENAME, emitted.content)

            output_file = self.config.output_dir / source.name / SCHEMA_FILENAME
            output_file.parent.mkdir(parents=True, exist_ok=True)
            output_file.write_text(content)

            result.output_file = output_file
            result.schema_count = len(ir.schemas)
            result.warnings = ir.warnings + emitted.warnings
        except TangenError as exc:
            logger.error("Source %s failed: %s", source.name, exc)
            result.error = str(exc)
            return result
        except OSError as exc:
            logger.error("Source %s could not be written: %s", source.name, exc)
            result.error = f"Cannot write {SCHEMA_FILENAME} for {source.name}: {exc}"
            return result

        for warning in result.warnings:
            logger.warning("[%s] %s", source.name, warning)
        logger.info("[%s] wrote %d schema(s) to %s", source.name, result.schema_count, output_file)
        return result

    # =========================================================================
    # On-demand capability checks
    # =========================================================================

    def _graphql_on_demand_warnings(
        self, source: GraphQLSourceConfig, schema: GraphQLSchema
    ) -> list[str]:
        warnings = []
        query_fields = schema.query_type.fields if schema.query_type else {}
        for field_name in source.on_demand:
            query_field = query_fields.get(field_name)
            if query_field is None:
                warnings.append(f'On-demand query field "{field_name}" does not exist on the query type')
                continue
            entity = get_named_type(query_field.type).name
            warning = on_demand_sync_warning(entity, analyze_graphql_query_capabilities(query_field))
            if warning:
                warnings.append(warning)
        return warnings

    def _openapi_on_demand_warnings(
        self, source: OpenAPISourceConfig, parser: OpenAPISchemaParser
    ) -> list[str]:
        warnings = []
        for operation_id in source.on_demand:
            found = parser.find_operation(operation_id)
            if found is None:
                warnings.append(f'On-demand operation "{operation_id}" was not found')
                continue
            _, _, path_item, operation = found
            try:
                params = parser.query_parameters(path_item, operation)
            except TangenError as exc:
                warnings.append(f'On-demand operation "{operation_id}" skipped: {exc}')
                continue
            warning = on_demand_sync_warning(operation_id, analyze_query_parameters(params))
            if warning:
                warnings.append(warning)
        return warnings
