# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""TreeConf - Hierarchical configuration store with safe live reload.

A tree of attribute nodes holding strings, string lists and nested nodes,
addressed by dotted keys, plus a validate-then-commit protocol that lets
subscribers veto a configuration reload before anything changes.
"""

__version__ = "0.1.0"

from .cells import StringListValue, StringValue, SubtreeValue
from .config import ConfigRoot
from .configurator import Configurator
from .exceptions import (
    ConfigFileError,
    ConfStoreError,
    KeyFormatError,
    TypeConflictError,
    ValidationError,
    ValueFormatError,
)
from .loader import load_file, load_resource, load_string
from .logsetup import LoggingSubscriber
from .store import AttributeNode, CallbackSubscriber, Subscriber, SubscriptionRegistry

__all__ = [
    # Core classes
    "AttributeNode",
    "ConfigRoot",
    # Cells
    "StringValue",
    "StringListValue",
    "SubtreeValue",
    # Subscriptions
    "Subscriber",
    "CallbackSubscriber",
    "SubscriptionRegistry",
    "LoggingSubscriber",
    # Loading
    "Configurator",
    "load_file",
    "load_resource",
    "load_string",
    # Exceptions
    "ConfStoreError",
    "KeyFormatError",
    "TypeConflictError",
    "ValueFormatError",
    "ValidationError",
    "ConfigFileError",
]
