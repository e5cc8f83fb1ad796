"""Hooks around emission.

A pre-generate hook sees a source's parsed SchemaIRResult before the
emitter runs and returns the result to emit; a post-generate hook sees the
rendered TypeScript module before it is written.

    runner = HookRunner(
        pre_hooks=[FilterSchemasHook(exclude_categories={"fragment"})],
        post_hooks=[AddHeaderHook("Copyright 2026 Acme")],
    )
    SchemaGenerator(config, hooks=runner).generate()
"""

import logging
from typing import Iterable, Protocol, runtime_checkable

from .ir import NamedSchema, SchemaIRResult

logger = logging.getLogger(__name__)

_COMMENT_STARTS = ("//", "/*", "*")


@runtime_checkable
class PreGenerateHook(Protocol):
    """Rewrites the named schemas of one source before emission."""

    def pre_generate(self, result: SchemaIRResult) -> SchemaIRResult:
        """Return the result to emit.

        Args:
            result: Named schemas in dependency order plus parser warnings.
                Dropping an entry other entries reference leaves an
                undeclared schema constant in the module.

        Returns:
            The result handed to the emitter.
        """
        ...


@runtime_checkable
class PostGenerateHook(Protocol):
    """Rewrites a rendered module before it is written."""

    def post_generate(self, filename: str, content: str) -> str:
        """Return the module text to write to `filename` (e.g. "schema.ts")."""
        ...


class AddHeaderHook:
    """Prepends a comment block to the generated module.

    Plain text lines become `//` comments; lines that already are
    TypeScript comments are kept as they are.

    Example:
        AddHeaderHook("Copyright 2026 Acme\\nSee LICENSE")
    """

    def __init__(self, header: str):
        self.lines = [
            line if line.lstrip().startswith(_COMMENT_STARTS) or not line.strip() else f"// {line}"
            for line in header.rstrip("\n").splitlines()
        ]

    def post_generate(self, _filename: str, content: str) -> str:
        return "\n".join(self.lines) + "\n\n" + content


class FilterSchemasHook:
    """Drops named schemas by name prefix/suffix or category.

    Entries that depend on a dropped schema are dropped as well, since their
    emitted code would reference a constant that no longer exists. Each
    such cascade is reported in the result's warnings.

    Example:
        # Operation schemas only
        FilterSchemasHook(exclude_categories={"component", "enum", "input"})
    """

    def __init__(
        self,
        exclude_prefix: str | None = None,
        exclude_suffix: str | None = None,
        include_prefix: str | None = None,
        include_suffix: str | None = None,
        exclude_categories: set[str] | None = None,
    ):
        self.exclude_prefix = exclude_prefix
        self.exclude_suffix = exclude_suffix
        self.include_prefix = include_prefix
        self.include_suffix = include_suffix
        self.exclude_categories = exclude_categories or set()

    def selects(self, entry: NamedSchema) -> bool:
        """Whether the filters alone keep `entry`."""
        name = entry.name
        return not (
            entry.category in self.exclude_categories
            or (self.exclude_prefix and name.startswith(self.exclude_prefix))
            or (self.exclude_suffix and name.endswith(self.exclude_suffix))
            or (self.include_prefix and not name.startswith(self.include_prefix))
            or (self.include_suffix and not name.endswith(self.include_suffix))
        )

    def pre_generate(self, result: SchemaIRResult) -> SchemaIRResult:
        removed = {entry.name for entry in result.schemas if not self.selects(entry)}
        # Cycles can put a dependent before its dependency, so repeat until stable
        while True:
            cascade = [
                entry for entry in result.schemas
                if entry.name not in removed and entry.dependencies & removed
            ]
            if not cascade:
                break
            for entry in cascade:
                missing = ", ".join(f'"{name}"' for name in sorted(entry.dependencies & removed))
                result.warnings.append(
                    f'Dropped schema "{entry.name}": it depends on filtered schema(s) {missing}'
                )
            removed.update(entry.name for entry in cascade)
        result.schemas = [entry for entry in result.schemas if entry.name not in removed]
        return result


class HookRunner:
    """Applies pre- and post-generate hooks in registration order."""

    def __init__(
        self,
        pre_hooks: Iterable[PreGenerateHook] = (),
        post_hooks: Iterable[PostGenerateHook] = (),
    ):
        self.pre_hooks: list[PreGenerateHook] = list(pre_hooks)
        self.post_hooks: list[PostGenerateHook] = list(post_hooks)

    def add_pre_hook(self, hook: PreGenerateHook):
        self.pre_hooks.append(hook)

    def add_post_hook(self, hook: PostGenerateHook):
        self.post_hooks.append(hook)

    def run_pre_hooks(self, result: SchemaIRResult) -> SchemaIRResult:
        for hook in self.pre_hooks:
            before = len(result.schemas)
            result = hook.pre_generate(result)
            logger.debug(
                "%s: %d -> %d schema(s)", type(hook).__name__, before, len(result.schemas)
            )
        return result

    def run_post_hooks(self, filename: str, content: str) -> str:
        for hook in self.post_hooks:
            content = hook.post_generate(filename, content)
        return content
