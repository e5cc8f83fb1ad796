"""Tests for the OpenAPI to IR parser."""

import pytest

from tangen.core.emitters import zod_emitter
from tangen.core.errors import ScalarMappingError, SchemaParseError
from tangen.core.ir import (
    OPTIONAL_NULLISH,
    OPTIONAL_ONLY,
    IRArray,
    IREnum,
    IRIntersection,
    IRLiteral,
    IRNull,
    IRNumber,
    IRObject,
    IRProperty,
    IRRaw,
    IRRecord,
    IRRef,
    IRString,
    IRTuple,
    IRUnion,
    IRUnknown,
)
from tangen.core.openapi_parser import (
    OpenAPISchemaParser,
    filter_paths,
    glob_to_regex,
    parse_openapi_to_ir,
    to_operation_name,
    to_type_name,
)
from tangen.core.utils import extract_dependencies


@pytest.fixture
def result(petstore):
    return parse_openapi_to_ir(petstore)


def component(schema_node, **components):
    """Lower a single component schema named "Target"."""
    document = {
        "openapi": "3.1.0",
        "paths": {},
        "components": {"schemas": {**components, "Target": schema_node}},
    }
    return parse_openapi_to_ir(document).get("Target").schema


def operation_document(operation, path="/things", path_params=None):
    path_item = {"get": operation}
    if path_params:
        path_item["parameters"] = path_params
    return {"openapi": "3.0.0", "paths": {path: path_item}}


# =============================================================================
# Naming and path filtering
# =============================================================================


class TestNamingAndFiltering:
    """Tests for operation naming and path globs."""

    def test_operation_name_from_id(self):
        assert to_operation_name("get", "/pets", "listPets") == "ListPets"
        assert to_operation_name("get", "/pets", "list_all-pets") == "ListAllPets"

    def test_operation_name_with_leading_digit(self):
        assert to_operation_name("get", "/pets", "123list") == "_123list"

    def test_type_name(self):
        assert to_type_name("Pet.Item") == "PetItem"
        assert to_type_name("pet-status") == "PetStatus"
        assert to_type_name("Pet") == "Pet"
        assert to_type_name("2fa_code") == "_2faCode"

    def test_operation_name_from_path(self):
        assert to_operation_name("get", "/pets/{petId}") == "GetPetsPetId"
        assert to_operation_name("delete", "/users/{id}/roles") == "DeleteUsersIdRoles"

    def test_glob_single_segment(self):
        pattern = glob_to_regex("/pets/*")
        assert pattern.match("/pets/{petId}")
        assert not pattern.match("/pets/{petId}/photos")
        assert not pattern.match("/pets")

    def test_glob_any_depth(self):
        pattern = glob_to_regex("/pets/**")
        assert pattern.match("/pets/{petId}/photos")

    def test_filter_paths(self):
        paths = {"/pets": {}, "/pets/{id}": {}, "/internal/health": {}}
        assert list(filter_paths(paths, include=["/pets", "/pets/*"])) == ["/pets", "/pets/{id}"]
        assert list(filter_paths(paths, exclude=["/internal/**"])) == ["/pets", "/pets/{id}"]
        assert list(filter_paths(paths)) == list(paths)


# =============================================================================
# Petstore document
# =============================================================================


class TestPetstore:
    """Tests against the pet store fixture."""

    def test_no_warnings(self, result):
        assert result.warnings == []

    def test_component_enum(self, result):
        status = result.get("Status")
        assert status.category == "component"
        assert status.schema == IREnum(values=["available", "pending", "sold"])

    def test_component_object(self, result):
        pet = result.get("Pet").schema
        assert pet.description == "A pet in the store"
        assert pet.properties["id"] == IRProperty(schema=IRString(format="uuid"))
        assert pet.properties["name"] == IRProperty(schema=IRString(min_length=1))
        assert pet.properties["status"] == IRProperty(schema=IRRef(name="Status"))
        assert pet.properties["owner"] == IRProperty(schema=IRRef(name="Owner"), required=False)
        assert pet.properties["special-name"].schema == IRNumber(integer=True)

    def test_nullable_optional_property_is_nullish(self, result):
        tag = result.get("Pet").schema.properties["tag"]
        assert tag == IRProperty(schema=IRString(), required=False)
        assert tag.optional_style == OPTIONAL_NULLISH

    def test_operation_entries(self, result):
        assert result.get("ListPetsResponse").schema == IRArray(items=IRRef(name="Pet"))
        assert result.get("ListPetsResponse").category == "response"
        assert result.get("CreatePetRequest").schema == IRRef(name="NewPet")
        assert result.get("CreatePetRequest").category == "input"
        assert result.get("CreatePetResponse").schema == IRRef(name="Pet")
        assert result.get("ListOwnersResponse").schema == IRArray(items=IRRef(name="Owner"))

    def test_operation_without_id(self, result):
        params = result.get("GetPetsPetIdParams")
        assert params.category == "params"
        assert params.schema.properties == {"petId": IRProperty(schema=IRString(format="uuid"))}
        assert result.get("GetPetsPetIdResponse").schema == IRRef(name="Pet")

    def test_query_params_are_optional_only(self, result):
        props = result.get("ListPetsParams").schema.properties
        assert list(props) == ["trace", "limit", "offset", "status", "sort"]
        assert props["limit"] == IRProperty(
            schema=IRNumber(integer=True, min=1, max=100),
            required=False,
            optional_style=OPTIONAL_ONLY,
        )
        assert props["status"].schema == IRRef(name="Status")
        assert props["status"].optional_style == OPTIONAL_ONLY

    def test_header_params_ignored(self, result):
        assert "X-Request-Id" not in result.get("ListPetsParams").schema.properties

    def test_path_level_params_shared(self, result):
        assert list(result.get("CreatePetParams").schema.properties) == ["trace"]

    def test_no_entries_without_params_or_content(self, result):
        assert result.get("ListOwnersParams") is None
        assert not any(name.startswith("Health") for name in result.names)

    def test_dependency_order(self, result):
        names = result.names
        for entry in result.schemas:
            for dep in entry.dependencies:
                assert names.index(dep) < names.index(entry.name)

    def test_dependencies_match_references(self, result):
        for entry in result.schemas:
            assert extract_dependencies(entry.schema) - {entry.name} == entry.dependencies, entry.name

    def test_optional_param_emits_optional(self, result):
        content = zod_emitter.emit(result.schemas).content
        assert "limit: z.number().int().min(1).max(100).optional()," in content
        assert "tag: z.string().nullish()," in content

    def test_path_filtering(self, petstore):
        result = parse_openapi_to_ir(petstore, include=["/pets/*"])
        assert result.get("GetPetsPetIdResponse") is not None
        assert result.get("ListPetsResponse") is None
        # Components are always kept
        assert result.get("Owner") is not None

    def test_format_override(self, petstore):
        result = parse_openapi_to_ir(petstore, {"uuid": "z.uuid()"}, "zod")
        assert result.get("Pet").schema.properties["id"].schema == IRRaw(code="z.uuid()")

    def test_invalid_format_override(self, petstore):
        with pytest.raises(ScalarMappingError):
            OpenAPISchemaParser(petstore, {"uuid": "string"}, "valibot")

    def test_find_operation(self, petstore):
        parser = OpenAPISchemaParser(petstore)
        method, path, path_item, operation = parser.find_operation("listPets")
        assert (method, path) == ("get", "/pets")
        names = [param["name"] for param in parser.query_parameters(path_item, operation)]
        assert names == ["trace", "limit", "offset", "status", "sort"]
        assert parser.find_operation("missing") is None


# =============================================================================
# Schema lowering
# =============================================================================


class TestSchemaLowering:
    """Tests for individual JSON Schema constructs."""

    def test_type_array_with_null(self):
        assert component({"type": ["string", "null"]}) == IRUnion(members=[IRString(), IRNull()])

    def test_type_array_union(self):
        assert component({"type": ["string", "integer"]}) == IRUnion(
            members=[IRString(), IRNumber(integer=True)]
        )

    def test_enum_with_null(self):
        assert component({"type": "string", "enum": ["a", "b", None]}) == IRUnion(
            members=[IREnum(values=["a", "b"]), IRNull()]
        )

    def test_mixed_enum(self):
        assert component({"enum": ["a", 1]}) == IRUnion(
            members=[IRLiteral(value="a"), IRLiteral(value=1)]
        )

    def test_const(self):
        assert component({"const": "cat"}) == IRLiteral(value="cat")

    def test_one_of(self):
        schema = component(
            {"oneOf": [{"$ref": "#/components/schemas/A"}, {"type": "string"}]},
            A={"type": "object", "properties": {}},
        )
        assert schema == IRUnion(members=[IRRef(name="A"), IRString()])

    def test_all_of_with_properties(self):
        schema = component(
            {
                "allOf": [{"$ref": "#/components/schemas/Base"}],
                "properties": {"extra": {"type": "boolean"}},
                "required": ["extra"],
            },
            Base={"type": "object", "properties": {"id": {"type": "string"}}},
        )
        assert isinstance(schema, IRIntersection)
        assert schema.members[0] == IRRef(name="Base")
        assert list(schema.members[1].properties) == ["extra"]

    def test_prefix_items_tuple(self):
        assert component({"type": "array", "prefixItems": [{"type": "string"}, {"type": "number"}]}) == (
            IRTuple(items=[IRString(), IRNumber()])
        )

    def test_record(self):
        assert component({"type": "object", "additionalProperties": {"type": "integer"}}) == IRRecord(
            key_type=IRString(), value_type=IRNumber(integer=True)
        )

    def test_free_form_object(self):
        assert component({"type": "object"}) == IRRecord(key_type=IRString(), value_type=IRUnknown())

    def test_strict_object(self):
        schema = component({
            "type": "object",
            "properties": {"id": {"type": "string"}},
            "required": ["id"],
            "additionalProperties": False,
        })
        assert schema == IRObject(
            properties={"id": IRProperty(schema=IRString())}, additional_properties=False
        )

    def test_typed_additional_properties(self):
        schema = component({
            "type": "object",
            "properties": {"id": {"type": "string"}},
            "additionalProperties": {"type": "number"},
        })
        assert schema.additional_properties == IRNumber()

    def test_string_formats(self):
        assert component({"type": "string", "format": "date-time"}) == IRString(format="datetime")
        assert component({"type": "string", "format": "uri"}) == IRString(format="url")
        assert component({"type": "string", "format": "binary"}) == IRString()

    def test_description_kept(self):
        assert component({"type": "string", "description": "A name"}).description == "A name"

    def test_nested_array_of_refs(self):
        schema = component(
            {"type": "array", "items": {"type": "array", "items": {"$ref": "#/components/schemas/A"}}},
            A={"type": "string"},
        )
        assert schema == IRArray(items=IRArray(items=IRRef(name="A")))


# =============================================================================
# Operations and media types
# =============================================================================


class TestOperations:
    """Tests for request bodies, responses and parameters."""

    def test_prefers_json_media_type(self):
        document = {
            "openapi": "3.0.0",
            "paths": {"/x": {"post": {
                "operationId": "send",
                "requestBody": {"content": {
                    "text/plain": {"schema": {"type": "string"}},
                    "application/vnd.api+json": {"schema": {"type": "boolean"}},
                }},
                "responses": {"200": {"content": {"application/json": {"schema": {"type": "integer"}}}}},
            }}},
        }
        result = parse_openapi_to_ir(document)
        assert result.get("SendRequest").schema.kind == "boolean"
        assert result.get("SendResponse").schema == IRNumber(integer=True)

    def test_first_success_response(self):
        operation = {
            "operationId": "get",
            "responses": {
                "default": {"content": {"application/json": {"schema": {"type": "string"}}}},
                "204": {"description": "empty"},
                "200": {"content": {"application/json": {"schema": {"type": "boolean"}}}},
            },
        }
        result = parse_openapi_to_ir(operation_document(operation))
        assert result.get("GetResponse").schema.kind == "boolean"

    def test_nullable_optional_param_is_nullish(self):
        operation = {
            "operationId": "search",
            "parameters": [{"name": "q", "in": "query", "schema": {"type": "string", "nullable": True}}],
            "responses": {},
        }
        prop = parse_openapi_to_ir(operation_document(operation)).get("SearchParams").schema.properties["q"]
        assert prop == IRProperty(schema=IRString(), required=False)
        assert prop.optional_style == OPTIONAL_NULLISH

    def test_operation_param_overrides_path_param(self):
        operation = {
            "operationId": "list",
            "parameters": [{"name": "page", "in": "query", "required": True, "schema": {"type": "integer"}}],
            "responses": {},
        }
        path_params = [{"name": "page", "in": "query", "schema": {"type": "string"}}]
        props = parse_openapi_to_ir(operation_document(operation, path_params=path_params)).get(
            "ListParams"
        ).schema.properties
        assert props["page"] == IRProperty(schema=IRNumber(integer=True))

    def test_unresolved_reference_skips_operation(self):
        document = {
            "openapi": "3.0.0",
            "paths": {
                "/bad": {"get": {
                    "operationId": "bad",
                    "parameters": [{"$ref": "#/components/parameters/Missing"}],
                    "responses": {},
                }},
                "/good": {"get": {
                    "operationId": "good",
                    "responses": {"200": {"content": {"application/json": {"schema": {"type": "string"}}}}},
                }},
            },
        }
        result = parse_openapi_to_ir(document)
        assert result.get("GoodResponse") is not None
        assert result.warnings == [
            'Skipped GET /bad: cannot resolve reference "#/components/parameters/Missing"'
        ]

    def test_unknown_component_reference(self):
        document = {
            "openapi": "3.0.0",
            "components": {"schemas": {
                "Bad": {"$ref": "#/components/schemas/Ghost"},
                "Good": {"type": "string"},
            }},
        }
        result = parse_openapi_to_ir(document)
        assert result.get("Bad").schema == IRUnknown()
        assert result.get("Good").schema == IRString()
        assert result.warnings == [
            'Component schema "Bad": unknown component schema "Ghost"; typed as unknown'
        ]

    def test_broken_nested_reference_keeps_component(self):
        document = {
            "openapi": "3.0.0",
            "components": {"schemas": {
                "A": {"type": "object", "properties": {
                    "id": {"type": "string"},
                    "extra": {"$ref": "#/components/parameters/Nope"},
                }},
                "B": {"type": "object", "properties": {"a": {"$ref": "#/components/schemas/A"}}},
            }},
        }
        result = parse_openapi_to_ir(document)
        assert result.names == ["A", "B"]
        assert result.get("A").schema.properties["extra"] == IRProperty(schema=IRUnknown(), required=False)
        assert result.warnings == [
            'Component schema "A": cannot resolve reference "#/components/parameters/Nope"; typed as unknown'
        ]
        content = zod_emitter.emit(result.schemas).content
        assert "export const aSchema = " in content
        assert "a: aSchema.nullish()," in content


class TestComponentNames:
    """Component keys that are not identifiers."""

    @pytest.fixture
    def document(self):
        return {
            "openapi": "3.0.0",
            "components": {"schemas": {
                "Pet.Item": {
                    "type": "object",
                    "required": ["status"],
                    "properties": {"status": {"$ref": "#/components/schemas/pet-status"}},
                },
                "pet-status": {"type": "string", "enum": ["a", "b"]},
            }},
        }

    def test_keys_become_identifiers(self, document):
        result = parse_openapi_to_ir(document)
        assert result.names == ["PetStatus", "PetItem"]
        assert result.get("PetItem").schema.properties["status"].schema == IRRef(name="PetStatus")
        assert result.get("PetItem").dependencies == frozenset({"PetStatus"})
        assert result.warnings == []

    def test_emitted_module(self, document):
        content = zod_emitter.emit(parse_openapi_to_ir(document).schemas).content
        assert 'export const petStatusSchema = z.enum(["a", "b"]);' in content
        assert "export type PetStatus = z.infer<typeof petStatusSchema>;" in content
        assert "status: petStatusSchema," in content
        assert "export type PetItem = z.infer<typeof petItemSchema>;" in content
        assert "pet.Item" not in content
        assert "pet-status" not in content

    def test_colliding_keys_are_renamed(self):
        document = {
            "openapi": "3.0.0",
            "components": {"schemas": {
                "pet_status": {"type": "string"},
                "pet-status": {"type": "integer"},
                "Holder": {"type": "object", "properties": {
                    "first": {"$ref": "#/components/schemas/pet_status"},
                    "second": {"$ref": "#/components/schemas/pet-status"},
                }},
            }},
        }
        result = parse_openapi_to_ir(document)
        assert result.get("PetStatus").schema == IRString()
        assert result.get("PetStatus2").schema == IRNumber(integer=True)
        props = result.get("Holder").schema.properties
        assert props["first"].schema == IRRef(name="PetStatus")
        assert props["second"].schema == IRRef(name="PetStatus2")
        assert result.warnings == [
            'Component schemas "pet_status" and "pet-status" both map to "PetStatus"; '
            '"pet-status" is named "PetStatus2"'
        ]

    def test_operation_id_with_leading_digit(self):
        document = operation_document({
            "operationId": "123list",
            "responses": {"200": {"content": {"application/json": {"schema": {"type": "string"}}}}},
        })
        content = zod_emitter.emit(parse_openapi_to_ir(document).schemas).content
        assert "export const _123listResponseSchema = z.string();" in content


class TestDocumentErrors:
    """Tests for structurally unusable documents."""

    def test_not_a_mapping(self):
        with pytest.raises(SchemaParseError, match="must be a mapping"):
            OpenAPISchemaParser(["openapi"])

    def test_missing_version(self):
        with pytest.raises(SchemaParseError, match="no 'openapi' version string"):
            OpenAPISchemaParser({"paths": {}})

    def test_swagger(self):
        with pytest.raises(SchemaParseError, match="Swagger 2.0"):
            OpenAPISchemaParser({"swagger": "2.0", "paths": {}})

    def test_paths_not_mapping(self):
        with pytest.raises(SchemaParseError, match="'paths' must be a mapping"):
            OpenAPISchemaParser({"openapi": "3.0.0", "paths": ["/x"]})

    def test_components_not_mapping(self):
        with pytest.raises(SchemaParseError, match="'components' must be a mapping"):
            OpenAPISchemaParser({"openapi": "3.0.0", "components": "x"})
