"""Tests for the generation pipeline."""

from pathlib import Path

import pytest

from tangen.core import generator as generator_module
from tangen.core.config import TangenConfig
from tangen.core.errors import SourceLoadError
from tangen.core.generator import SCHEMA_FILENAME, SchemaGenerator
from tangen.core.hooks import AddHeaderHook, HookRunner
from tangen.core.ir import IRString, NamedSchema
from tangen.core.loaders import load_openapi_document

FIXTURES = Path(__file__).parent / "fixtures"


def make_config(tmp_path, *sources):
    return TangenConfig.model_validate({
        "output": "out",
        "sources": list(sources),
        "base_dir": tmp_path,
    })


def graphql_source(**overrides):
    source = {
        "name": "api",
        "type": "graphql",
        "schema": {"file": str(FIXTURES / "schema.graphql")},
        "documents": [str(FIXTURES / "operations.graphql")],
        "scalars": {"Money": "z.string()"},
    }
    source.update(overrides)
    return source


def openapi_source(**overrides):
    source = {
        "name": "petstore",
        "type": "openapi",
        "spec": str(FIXTURES / "petstore.yaml"),
        "validator": "valibot",
    }
    source.update(overrides)
    return source


def on_demand_message(entity):
    return (
        f'Entity "{entity}" configured for on-demand sync, but no filtering arguments detected '
        "on the query field. Collection will fetch all data regardless of predicates."
    )


def by_source(results):
    return {result.source: result for result in results}


# =============================================================================
# Pipeline
# =============================================================================


class TestGenerate:
    """Tests for generating whole sources."""

    def test_writes_one_module_per_source(self, tmp_path):
        config = make_config(tmp_path, graphql_source(), openapi_source())
        results = by_source(SchemaGenerator(config).generate())

        api = results["api"]
        assert api.ok
        assert api.output_file == tmp_path / "out" / "api" / SCHEMA_FILENAME
        assert api.warnings == []
        content = api.output_file.read_text()
        assert content.startswith("/* eslint-disable */\n")
        assert 'import * as z from "zod";' in content
        assert "export const petSchema = " in content
        assert "export type GetPetsQuery = z.infer<typeof getPetsQuerySchema>;" in content

        petstore = results["petstore"]
        assert petstore.ok
        content = petstore.output_file.read_text()
        assert 'import * as v from "valibot";' in content
        assert "export const listPetsResponseSchema = " in content

    def test_schema_count(self, tmp_path):
        config = make_config(tmp_path, openapi_source())
        (result,) = SchemaGenerator(config).generate()
        content = result.output_file.read_text()
        assert result.schema_count == content.count("export const ")

    def test_results_follow_config_order(self, tmp_path):
        config = make_config(tmp_path, openapi_source(), graphql_source())
        results = SchemaGenerator(config).generate()
        assert [r.source for r in results] == ["petstore", "api"]

    def test_ir_warnings_reported(self, tmp_path):
        config = make_config(tmp_path, graphql_source(scalars={}))
        (result,) = SchemaGenerator(config).generate()
        assert result.ok
        assert 'Unknown scalar "Money" mapped to unknown; add a scalar mapping to type it' in result.warnings

    def test_arktype_module(self, tmp_path):
        source = graphql_source(validator="arktype", scalars={})
        config = make_config(tmp_path, source)
        (result,) = SchemaGenerator(config).generate()
        assert result.ok
        assert result.output_file.read_text().count('from "arktype";') == 1


# =============================================================================
# Error isolation
# =============================================================================


class TestErrorIsolation:
    """A failing source does not stop the others."""

    def test_missing_file(self, tmp_path):
        config = make_config(
            tmp_path,
            graphql_source(schema={"file": "missing.graphql"}),
            openapi_source(),
        )
        results = by_source(SchemaGenerator(config).generate())
        assert not results["api"].ok
        assert "Schema path does not exist" in results["api"].error
        assert results["api"].output_file is None
        assert results["petstore"].ok
        assert results["petstore"].output_file.exists()

    def test_invalid_scalar_mapping(self, tmp_path):
        config = make_config(
            tmp_path, graphql_source(scalars={"Money": "'string'"}), openapi_source()
        )
        results = by_source(SchemaGenerator(config).generate())
        assert "Did you mean" in results["api"].error
        assert not (tmp_path / "out" / "api").exists()
        assert results["petstore"].ok

    def test_unwritable_output(self, tmp_path):
        out = tmp_path / "out"
        out.mkdir()
        # A file where the source's output directory should go
        (out / "api").write_text("")
        config = make_config(tmp_path, graphql_source(), openapi_source())
        results = by_source(SchemaGenerator(config).generate())
        assert results["api"].error.startswith("Cannot write schema.ts for api: ")
        assert results["api"].output_file is None
        assert results["petstore"].ok
        assert results["petstore"].output_file.exists()

    def test_duplicate_names_from_hook(self, tmp_path):
        class Duplicate:
            def pre_generate(self, result):
                result.schemas.append(NamedSchema(name="Pet", schema=IRString()))
                return result

        config = make_config(tmp_path, openapi_source())
        hooks = HookRunner(pre_hooks=[Duplicate()])
        (result,) = SchemaGenerator(config, hooks=hooks).generate()
        assert 'Schema name "Pet" is defined more than once' in result.error

    def test_unexpected_errors_propagate(self, tmp_path, monkeypatch):
        def explode(path):
            raise RuntimeError("boom")

        monkeypatch.setattr(generator_module, "load_openapi_document", explode)
        config = make_config(tmp_path, openapi_source())
        with pytest.raises(RuntimeError, match="boom"):
            SchemaGenerator(config).generate()


# =============================================================================
# Remote sources
# =============================================================================


class TestRemoteSources:
    """Tests for fetched sources."""

    def test_remote_spec(self, tmp_path, monkeypatch):
        calls = []

        async def fake_fetch(url, headers, timeout):
            calls.append((url, headers, timeout))
            return load_openapi_document(FIXTURES / "petstore.yaml")

        monkeypatch.setattr(generator_module, "fetch_openapi_document", fake_fetch)
        source = openapi_source(spec="https://example.com/openapi.yaml", headers={"X-Key": "k"})
        config = make_config(tmp_path, source)
        (result,) = SchemaGenerator(config, timeout=5).generate()

        assert result.ok
        assert calls == [("https://example.com/openapi.yaml", {"X-Key": "k"}, 5)]

    def test_remote_failure_is_isolated(self, tmp_path, monkeypatch):
        async def failing_fetch(url, headers, timeout):
            raise SourceLoadError(f"Fetching {url} failed: 503")

        monkeypatch.setattr(generator_module, "fetch_graphql_schema", failing_fetch)
        config = make_config(
            tmp_path,
            graphql_source(schema={"url": "https://example.com/graphql"}),
            openapi_source(),
        )
        results = by_source(SchemaGenerator(config).generate())
        assert results["api"].error == "Fetching https://example.com/graphql failed: 503"
        assert results["petstore"].ok


# =============================================================================
# On-demand checks
# =============================================================================


class TestOnDemand:
    """Tests for on-demand capability warnings."""

    def test_graphql(self, tmp_path):
        source = graphql_source(on_demand=["pets", "allOwners", "nope"])
        (result,) = SchemaGenerator(make_config(tmp_path, source)).generate()
        assert result.warnings == [
            on_demand_message("Owner"),
            'On-demand query field "nope" does not exist on the query type',
        ]

    def test_openapi(self, tmp_path):
        source = openapi_source(on_demand=["listPets", "listOwners", "missing"])
        (result,) = SchemaGenerator(make_config(tmp_path, source)).generate()
        assert result.warnings == [
            on_demand_message("listOwners"),
            'On-demand operation "missing" was not found',
        ]


# =============================================================================
# Hooks
# =============================================================================


class TestHooks:
    """Tests for hooks wired into the pipeline."""

    def test_post_hook_transforms_output(self, tmp_path):
        hooks = HookRunner(post_hooks=[AddHeaderHook("// Storefront")])
        config = make_config(tmp_path, openapi_source())
        (result,) = SchemaGenerator(config, hooks=hooks).generate()
        assert result.output_file.read_text().startswith("// Storefront\n\n/* eslint-disable */")

    def test_pre_hook_filters_schemas(self, tmp_path):
        class ComponentsOnly:
            def pre_generate(self, result):
                result.schemas = [s for s in result.schemas if s.category == "component"]
                return result

        config = make_config(tmp_path, openapi_source())
        (result,) = SchemaGenerator(config, hooks=HookRunner(pre_hooks=[ComponentsOnly()])).generate()
        content = result.output_file.read_text()
        assert "export const petSchema = " in content
        assert "listPetsResponseSchema" not in content
