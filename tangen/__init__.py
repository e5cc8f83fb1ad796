"""tangen: compile GraphQL and OpenAPI schemas to TypeScript validator schemas."""

__version__ = "0.1.0"
