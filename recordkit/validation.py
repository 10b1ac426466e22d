"""
Validation hooks for record payloads.

A validator is any callable taking the filtered payload and returning a
mapping of field name to error message, empty when the payload is valid.
Models receive one at construction time.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class Validator(Protocol):
    def __call__(self, data: Mapping[str, Any]) -> Mapping[str, str]:
        """Return field -> message for every failed rule."""
        ...


def required(field: str, message: Optional[str] = None) -> Validator:
    """Fail when `field` is missing from the payload or holds a falsy value."""
    text = message or f"{field.replace('_', ' ').capitalize()} is required"

    def _validate(data: Mapping[str, Any]) -> Dict[str, str]:
        if not data.get(field):
            return {field: text}
        return {}

    _validate.__name__ = f"required_{field}"
    return _validate


def combine(*validators: Validator) -> Validator:
    """Run validators in order; the first message reported for a field wins."""

    def _validate(data: Mapping[str, Any]) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        for validator in validators:
            for field, message in validator(data).items():
                errors.setdefault(field, message)
        return errors

    return _validate


__all__ = ["Validator", "combine", "required"]
