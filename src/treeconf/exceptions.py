# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""TreeConf exceptions."""

from __future__ import annotations


class ConfStoreError(Exception):
    """Base exception for TreeConf errors."""

    pass


class KeyFormatError(ConfStoreError, KeyError):
    """Raised when a compound key is empty or has an empty segment."""

    def __str__(self) -> str:
        # KeyError would repr() the message
        return str(self.args[0]) if self.args else ''


class TypeConflictError(ConfStoreError, TypeError):
    """Raised when a key needs a subtree where a value is stored, or vice versa."""

    pass


class ValueFormatError(ConfStoreError, ValueError):
    """Raised when a stored string cannot be parsed as the requested type."""

    pass


class ConfigFileError(ConfStoreError):
    """Raised when a config file cannot be found, read or converted."""

    pass


class ValidationError(ConfStoreError):
    """Raised (or returned) by a subscriber that rejects a replacement tree.

    Attributes:
        reason: Human-readable explanation of the rejection.
        path: Fully-qualified path of the node being validated, filled in
            by the reload driver when it is not given.
    """

    def __init__(self, reason: str, path: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.path = path

    def __str__(self) -> str:
        if self.path is None:
            return self.reason
        return f"{self.path or '<root>'}: {self.reason}"
