"""Payload transforms.

A transform maps the raw bytes of a source object to the bytes written to
the destination container. Text transforms decode strictly as UTF-8; a
payload that is not valid UTF-8 fails with :class:`DecodeError` instead of
being written back mangled.
"""

from __future__ import annotations

from collections.abc import Callable

from object_transformer_core.exceptions import ConfigurationError, DecodeError

Transform = Callable[[bytes], bytes]

DEFAULT_TRANSFORM = "uppercase"


def _decode_text(payload: bytes) -> str:
    try:
        return payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(
            f"Payload is not valid UTF-8 text (byte {e.start}): {e.reason}"
        ) from e


def uppercase_transform(payload: bytes) -> bytes:
    """Uppercase a UTF-8 text payload."""
    return _decode_text(payload).upper().encode("utf-8")


def lowercase_transform(payload: bytes) -> bytes:
    """Lowercase a UTF-8 text payload."""
    return _decode_text(payload).lower().encode("utf-8")


def identity_transform(payload: bytes) -> bytes:
    return payload


class TransformRegistry:
    """Name to transform lookup used to select a transform from configuration."""

    def __init__(self) -> None:
        self._transforms: dict[str, Transform] = {}

    def register(self, name: str, transform: Transform) -> None:
        self._transforms[name] = transform

    def names(self) -> list[str]:
        return sorted(self._transforms)

    def get(self, name: str) -> Transform:
        try:
            return self._transforms[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown transform '{name}'. Available: {', '.join(self.names())}",
                component="transform",
            ) from None


def create_transform_registry() -> TransformRegistry:
    """Create a registry with all built-in transforms registered."""
    registry = TransformRegistry()
    registry.register("uppercase", uppercase_transform)
    registry.register("lowercase", lowercase_transform)
    registry.register("identity", identity_transform)
    return registry


def get_transform(name: str = DEFAULT_TRANSFORM) -> Transform:
    return create_transform_registry().get(name)
