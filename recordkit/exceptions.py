"""Exception types raised by recordkit."""

from __future__ import annotations


class RecordkitError(Exception):
    """Base class for recordkit errors."""


class ModelConfigurationError(RecordkitError, RuntimeError):
    """
    A model class is declared incorrectly (e.g. no fillable columns).

    This signals a developer mistake and is raised as soon as the class is
    defined or instantiated; it is never meant to be caught and ignored.
    """


__all__ = ["RecordkitError", "ModelConfigurationError"]
