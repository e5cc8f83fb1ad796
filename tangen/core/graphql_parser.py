"""GraphQL schema + documents to IR.

Walks a graphql-core GraphQLSchema together with parsed operation and
fragment documents, producing named IR schemas for enums, input types,
fragments, operation variables and responses, and the object types the
operations reach.

Nullability follows GraphQL's wrapper grammar: a type without `!` is
nullable in responses and nullish (absent or null) in inputs and
variables. List items carry their own nullability.
"""

from typing import Iterable

from graphql import (
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    GraphQLNamedType,
    GraphQLSchema,
    InlineFragmentNode,
    OperationDefinitionNode,
    OperationType,
    SelectionSetNode,
    is_abstract_type,
    is_enum_type,
    is_input_object_type,
    is_list_type,
    is_non_null_type,
    is_object_type,
    is_scalar_type,
    is_union_type,
    type_from_ast,
)

from .ir import (
    IRArray,
    IREnum,
    IRLiteral,
    IRModified,
    IRObject,
    IRRef,
    IRString,
    IRUnion,
    IRUnknown,
    NamedSchema,
    SchemaIR,
    SchemaIRResult,
    resolve_modified,
    to_property,
)
from .scalars import ScalarRegistry, validate_scalar_overrides
from .utils import (
    create_named_schema,
    to_fragment_type_name,
    to_mutation_response_type_name,
    to_mutation_variables_type_name,
    to_query_response_type_name,
    to_query_variables_type_name,
    to_subscription_response_type_name,
    to_subscription_variables_type_name,
    topological_sort_schemas,
)

OPERATION_NAMING = {
    OperationType.QUERY: (to_query_response_type_name, to_query_variables_type_name),
    OperationType.MUTATION: (to_mutation_response_type_name, to_mutation_variables_type_name),
    OperationType.SUBSCRIPTION: (
        to_subscription_response_type_name,
        to_subscription_variables_type_name,
    ),
}

CONDITIONAL_DIRECTIVES = {"include", "skip"}


class GraphQLSchemaParser:
    """Parses a GraphQL schema and operation documents into IR.

    Example:
        schema = build_schema(sdl)
        parser = GraphQLSchemaParser(schema, [parse(operations)])
        result = parser.parse()
    """

    def __init__(
        self,
        schema: GraphQLSchema,
        documents: Iterable[DocumentNode] = (),
        scalars: dict[str, str] | None = None,
        validator: str | None = None,
    ):
        """Initialize the parser.

        Args:
            schema: The GraphQL schema.
            documents: Parsed documents holding operations and fragments.
            scalars: Custom scalar name -> validator-specific code.
            validator: Target validator; when given, scalar overrides are
                checked against its expression grammar.

        Raises:
            ScalarMappingError: If an override is not a plausible expression.
        """
        self.schema = schema
        self.documents = list(documents)
        if validator:
            scalars = validate_scalar_overrides(scalars, validator)
        self.scalars = ScalarRegistry(scalars)
        self.warnings: list[str] = []
        self._entries: list[NamedSchema] = []
        self._names: set[str] = set()
        self._fragments: dict[str, FragmentDefinitionNode] = {}
        self._reachable: list[str] = []
        self._unknown_scalars: set[str] = set()
        self._context = ""

    def parse(self) -> SchemaIRResult:
        """Parse everything and return the topologically sorted result."""
        self._collect_fragments()
        for named_type in self.schema.type_map.values():
            if named_type.name.startswith("__"):
                continue
            if is_enum_type(named_type):
                self._add(
                    named_type.name,
                    IREnum(values=list(named_type.values), description=named_type.description),
                    "enum",
                )
        for named_type in self.schema.type_map.values():
            if not named_type.name.startswith("__") and is_input_object_type(named_type):
                self._add(named_type.name, self._input_object(named_type), "input")

        for fragment in self._fragments.values():
            self._parse_fragment(fragment)
        for document in self.documents:
            for definition in document.definitions:
                if isinstance(definition, OperationDefinitionNode):
                    self._parse_operation(definition)

        # The queue grows while components are built
        index = 0
        while index < len(self._reachable):
            self._parse_component(self._reachable[index])
            index += 1

        return SchemaIRResult(
            schemas=topological_sort_schemas(self._entries),
            warnings=list(self.warnings),
        )

    # =========================================================================
    # Bookkeeping
    # =========================================================================

    def _warn(self, message: str):
        if message not in self.warnings:
            self.warnings.append(message)

    def _add(self, name: str, schema: SchemaIR, category: str):
        if name in self._names:
            self._warn(f'Duplicate schema name "{name}" ({category}); keeping the first definition')
            return
        self._names.add(name)
        self._entries.append(create_named_schema(name, schema, category))

    def _reach(self, type_name: str):
        if type_name not in self._reachable:
            self._reachable.append(type_name)

    def _collect_fragments(self):
        for document in self.documents:
            for definition in document.definitions:
                if isinstance(definition, FragmentDefinitionNode):
                    name = definition.name.value
                    if name in self._fragments:
                        self._warn(f'Fragment "{name}" is defined more than once; using the first')
                        continue
                    self._fragments[name] = definition

    # =========================================================================
    # Type lowering
    # =========================================================================

    def _scalar(self, scalar) -> SchemaIR:
        schema = self.scalars.to_ir(scalar.name)
        if schema is not None:
            return schema
        if scalar.name not in self._unknown_scalars:
            self._unknown_scalars.add(scalar.name)
            self._warn(
                f'Unknown scalar "{scalar.name}" mapped to unknown; '
                "add a scalar mapping to type it"
            )
        return IRUnknown()

    def _wrapped(self, gql_type, build_named) -> IRModified:
        """Unwrap non-null and list layers; nullability applies per layer."""
        nullable = True
        if is_non_null_type(gql_type):
            nullable = False
            gql_type = gql_type.of_type
        if is_list_type(gql_type):
            inner = self._wrapped(gql_type.of_type, build_named)
            schema = IRArray(items=resolve_modified(IRModified(inner.schema, nullable=inner.nullable)))
        else:
            schema = build_named(gql_type)
        return IRModified(schema=schema, nullable=nullable)

    def _input_named(self, named: GraphQLNamedType) -> SchemaIR:
        if is_scalar_type(named):
            return self._scalar(named)
        return IRRef(name=named.name)

    def _input_object(self, input_type) -> IRObject:
        properties = {}
        for field_name, field in input_type.fields.items():
            wrapped = self._wrapped(field.type, self._input_named)
            properties[field_name] = to_property(
                IRModified(wrapped.schema, nullish=wrapped.nullable), field.description
            )
        return IRObject(properties=properties, description=input_type.description)

    def _component_named(self, named: GraphQLNamedType) -> SchemaIR:
        if is_scalar_type(named):
            return self._scalar(named)
        if not is_enum_type(named):
            self._reach(named.name)
        return IRRef(name=named.name)

    def _parse_component(self, type_name: str):
        named = self.schema.get_type(type_name)
        if named is None:
            return
        if is_union_type(named):
            members = []
            for member in named.types:
                self._reach(member.name)
                members.append(IRRef(name=member.name))
            schema: SchemaIR = IRUnion(members=members, description=named.description)
        else:
            properties = {}
            for field_name, field in named.fields.items():
                wrapped = self._wrapped(field.type, self._component_named)
                properties[field_name] = to_property(wrapped, field.description)
            schema = IRObject(properties=properties, description=named.description)
        self._add(type_name, schema, "component")

    # =========================================================================
    # Operations and fragments
    # =========================================================================

    def _parse_fragment(self, fragment: FragmentDefinitionNode):
        name = fragment.name.value
        self._context = f'fragment "{name}"'
        type_name = fragment.type_condition.name.value
        parent = self.schema.get_type(type_name)
        if parent is None:
            self._warn(f'Fragment "{name}" is on unknown type "{type_name}"; skipped')
            return
        schema = self._selection(parent, fragment.selection_set, frozenset({name}))
        self._add(to_fragment_type_name(name), schema, "fragment")

    def _parse_operation(self, operation: OperationDefinitionNode):
        kind = operation.operation.value
        if operation.name is None:
            self._warn(f"Anonymous {kind} skipped; give the operation a name to generate schemas")
            return
        name = operation.name.value
        self._context = f'{kind} "{name}"'
        root = {
            OperationType.QUERY: self.schema.query_type,
            OperationType.MUTATION: self.schema.mutation_type,
            OperationType.SUBSCRIPTION: self.schema.subscription_type,
        }[operation.operation]
        if root is None:
            self._warn(f'Schema has no {kind} root type; {kind} "{name}" skipped')
            return
        response_name, variables_name = OPERATION_NAMING[operation.operation]

        if operation.variable_definitions:
            self._add(variables_name(name), self._variables(operation), "variables")
        self._add(
            response_name(name),
            self._selection(root, operation.selection_set, frozenset()),
            "response",
        )

    def _variables(self, operation: OperationDefinitionNode) -> IRObject:
        properties = {}
        for definition in operation.variable_definitions:
            var_name = definition.variable.name.value
            gql_type = type_from_ast(self.schema, definition.type)
            if gql_type is None:
                self._warn(f'Variable "${var_name}" in {self._context} has an unknown type; skipped')
                continue
            wrapped = self._wrapped(gql_type, self._input_named)
            if wrapped.nullable:
                modified = IRModified(wrapped.schema, nullish=True)
            elif definition.default_value is not None:
                # Non-null with a default may be omitted but not sent as null
                modified = IRModified(wrapped.schema, optional=True)
            else:
                modified = wrapped
            properties[var_name] = to_property(modified)
        return IRObject(properties=properties)

    # =========================================================================
    # Selection sets
    # =========================================================================

    def _applies(self, condition: str | None, type_: GraphQLNamedType) -> bool:
        """Whether a fragment with this type condition applies to type_."""
        if condition is None or condition == type_.name:
            return True
        condition_type = self.schema.get_type(condition)
        if condition_type is None:
            return False
        if is_abstract_type(condition_type) and is_object_type(type_):
            return self.schema.is_sub_type(condition_type, type_)
        return False

    def _narrows(
        self, parent: GraphQLNamedType, selection_set: SelectionSetNode, fragments: frozenset
    ) -> bool:
        """Whether an abstract selection has conditions on other types."""
        for selection in selection_set.selections:
            if isinstance(selection, InlineFragmentNode):
                condition = selection.type_condition
                if condition and condition.name.value != parent.name:
                    return True
                if self._narrows(parent, selection.selection_set, fragments):
                    return True
            elif isinstance(selection, FragmentSpreadNode):
                name = selection.name.value
                fragment = self._fragments.get(name)
                if fragment is None or name in fragments:
                    continue
                if fragment.type_condition.name.value != parent.name:
                    return True
                if self._narrows(parent, fragment.selection_set, fragments | {name}):
                    return True
        return False

    def _collect_fields(
        self,
        type_: GraphQLNamedType,
        selection_set: SelectionSetNode,
        fields: dict[str, list[FieldNode]],
        fragments: frozenset,
    ):
        for selection in selection_set.selections:
            if isinstance(selection, FieldNode):
                key = selection.alias.value if selection.alias else selection.name.value
                fields.setdefault(key, []).append(selection)
            elif isinstance(selection, InlineFragmentNode):
                condition = selection.type_condition
                if self._applies(condition.name.value if condition else None, type_):
                    self._collect_fields(type_, selection.selection_set, fields, fragments)
            elif isinstance(selection, FragmentSpreadNode):
                name = selection.name.value
                fragment = self._fragments.get(name)
                if fragment is None:
                    self._warn(f'Unknown fragment "{name}" spread in {self._context}; skipped')
                    continue
                if name in fragments:
                    continue
                if self._applies(fragment.type_condition.name.value, type_):
                    self._collect_fields(
                        type_, fragment.selection_set, fields, fragments | {name}
                    )

    def _selection(
        self, parent: GraphQLNamedType, selection_set: SelectionSetNode, fragments: frozenset
    ) -> SchemaIR:
        if is_abstract_type(parent) and self._narrows(parent, selection_set, fragments):
            members = [
                self._shape(concrete, selection_set, fragments)
                for concrete in self.schema.get_possible_types(parent)
            ]
            if len(members) == 1:
                return members[0]
            return IRUnion(members=members)
        return self._shape(parent, selection_set, fragments)

    def _shape(
        self, type_: GraphQLNamedType, selection_set: SelectionSetNode, fragments: frozenset
    ) -> IRObject:
        fields: dict[str, list[FieldNode]] = {}
        self._collect_fields(type_, selection_set, fields, fragments)
        type_fields = getattr(type_, "fields", {})
        properties = {}
        for key, nodes in fields.items():
            field_name = nodes[0].name.value
            if field_name == "__typename":
                schema = IRLiteral(value=type_.name) if is_object_type(type_) else IRString()
                properties[key] = to_property(IRModified(schema))
                continue
            field = type_fields.get(field_name)
            if field is None:
                self._warn(
                    f'Field "{field_name}" does not exist on type "{type_.name}" '
                    f"(in {self._context}); skipped"
                )
                continue

            def build_named(named, nodes=nodes):
                if is_scalar_type(named):
                    return self._scalar(named)
                if is_enum_type(named):
                    return IRRef(name=named.name)
                self._reach(named.name)
                merged = SelectionSetNode(
                    selections=tuple(
                        selection
                        for node in nodes
                        if node.selection_set
                        for selection in node.selection_set.selections
                    )
                )
                return self._selection(named, merged, fragments)

            wrapped = self._wrapped(field.type, build_named)
            if any(
                directive.name.value in CONDITIONAL_DIRECTIVES
                for node in nodes
                for directive in node.directives or ()
            ):
                wrapped.optional = True
            properties[key] = to_property(wrapped, field.description)
        return IRObject(properties=properties)


def parse_graphql_to_ir(
    schema: GraphQLSchema,
    documents: Iterable[DocumentNode] = (),
    scalars: dict[str, str] | None = None,
    validator: str | None = None,
) -> SchemaIRResult:
    """Convenience wrapper around GraphQLSchemaParser."""
    return GraphQLSchemaParser(schema, documents, scalars, validator).parse()
