"""Emitter registry.

Maps validator library identifiers to emitter instances so generators
can stay validator-agnostic.
"""

from ..errors import UnknownValidatorError
from .arktype import ArkTypeEmitter, arktype_emitter
from .base import Emitter, EmitterOptions, EmitterResult
from .effect import EffectEmitter, effect_emitter
from .valibot import ValibotEmitter, valibot_emitter
from .zod import ZodEmitter, zod_emitter

EMITTERS: dict[str, Emitter] = {
    "zod": zod_emitter,
    "valibot": valibot_emitter,
    "arktype": arktype_emitter,
    "effect": effect_emitter,
}

SUPPORTED_VALIDATORS: tuple[str, ...] = tuple(EMITTERS)


def get_emitter(library: str) -> Emitter:
    """Get an emitter by library name.

    Raises:
        UnknownValidatorError: If the library is not registered.
    """
    emitter = EMITTERS.get(library)
    if emitter is None:
        raise UnknownValidatorError(library, SUPPORTED_VALIDATORS)
    return emitter


def is_validator_library(value: str) -> bool:
    """Check if a string is a supported validator library name."""
    return value in EMITTERS


__all__ = [
    "EMITTERS",
    "SUPPORTED_VALIDATORS",
    "ArkTypeEmitter",
    "EffectEmitter",
    "Emitter",
    "EmitterOptions",
    "EmitterResult",
    "ValibotEmitter",
    "ZodEmitter",
    "arktype_emitter",
    "effect_emitter",
    "get_emitter",
    "is_validator_library",
    "valibot_emitter",
    "zod_emitter",
]
