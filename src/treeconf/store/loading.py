# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Functions for populating an AttributeNode from other sources."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..cells import StringListValue, StringValue, SubtreeValue

if TYPE_CHECKING:
    from .core import AttributeNode


def load_from_dict(target: AttributeNode, data: dict[str, Any]) -> None:
    """Load a nested dict into target.

    Values may be str, list/tuple of str, or dict for nested nodes.
    Keys may be compound ('db.host'); nested dicts merge into existing
    subtrees.

    Args:
        target: The node to populate.
        data: The source dict.

    Raises:
        TypeError: If a value has an unsupported type.
        TypeConflictError: If a key mixes values and subtrees.
    """
    for key, value in data.items():
        if isinstance(value, dict):
            load_from_dict(target.ensure_subtree(key), value)
        else:
            target.set(key, value)


def load_from_node(target: AttributeNode, source: AttributeNode) -> None:
    """Deep copy the cells of source into target.

    Nested nodes are recreated under target so that their names and
    owner follow target, not source.
    """
    for label, cell in source.items():
        if isinstance(cell, SubtreeValue):
            target._graft(label, cell.node)
        elif isinstance(cell, StringListValue):
            target._cells[label] = StringListValue(cell.items)
        else:
            target._cells[label] = StringValue(cell.text)
