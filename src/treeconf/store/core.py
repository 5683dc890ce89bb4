# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""AttributeNode - A hierarchical attribute tree with compound keys.

This module provides the AttributeNode class, the container behind every
configuration block in treeconf. A node maps local keys to cells (a string,
a string list, or a nested AttributeNode) and resolves dotted compound keys
through nested nodes.

Key Features:
    - **Compound keys**: 'db.host' resolves 'db' to a nested node, then 'host'
    - **Auto-vivification**: set() creates missing intermediate nodes
    - **Type safety**: values are never silently replaced by subtrees or
      traversed as if they were subtrees
    - **Structural equality**: independent of insertion order
    - **Canonical rendering**: str(node) gives a stable diagnostic form

Key Syntax:
    - Segments are separated by '.', the only separator
    - Empty keys and empty segments ('a..b', '.a', 'a.') are rejected
      with KeyFormatError

Example:
    Basic usage::

        node = AttributeNode()
        node.set('db.host', 'localhost')
        node.set('db.replicas', ['r1', 'r2'])

        node.get('db.host')               # 'localhost'
        node.get('db.replicas')           # '[r1,r2]'
        node.get_string_list('db.host')   # ['localhost']
        node.get_subtree('db').name       # 'db'
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Iterator

from ..cells import (
    Cell,
    StringListValue,
    StringValue,
    SubtreeValue,
    make_cell,
    quote_c,
)
from ..exceptions import ConfStoreError, KeyFormatError, TypeConflictError, ValueFormatError
from .loading import load_from_dict, load_from_node

if TYPE_CHECKING:
    from ..config import ConfigRoot
    from .subscription import Subscriber


_TRUE_WORDS = frozenset(('true', 'on', 'yes', '1'))
_FALSE_WORDS = frozenset(('false', 'off', 'no', '0'))


def split_key(key: str) -> list[str]:
    """Split a compound key into its segments.

    Args:
        key: Dotted key such as 'a.b.c'.

    Returns:
        List of non-empty segments.

    Raises:
        KeyFormatError: If the key is empty or has an empty segment.
    """
    if not isinstance(key, str):
        raise TypeError(f"key must be str, not {type(key).__name__}")
    parts = key.split('.')
    if not key or '' in parts:
        raise KeyFormatError(f"Invalid key {key!r}")
    return parts


class AttributeNode:
    """A node of the attribute tree with O(1) lookup by local key.

    AttributeNode provides:
    - get(key) / get_string_list(key) / get_subtree(key): typed reads
    - set(key, value): write with auto-vivification of intermediate nodes
    - contains(key) / remove(key): presence test and deletion
    - keys() / walk() / flatten(): iteration and flat views
    - subscribe(subscriber): register for reload notifications

    Local keys keep insertion order for iteration; a key that is set again
    keeps its original position.

    Attributes:
        name: Fully-qualified dotted name of this node ('' for a root).
            Fixed at creation.
    """

    __slots__ = ('_cells', '_name', '_owner')

    def __init__(
        self,
        source: dict[str, Any] | AttributeNode | None = None,
        name: str = '',
        owner: ConfigRoot | None = None,
    ) -> None:
        """Initialize an AttributeNode.

        Args:
            source: Optional initial data. Can be:
                - dict: nested dict; values are str, list/tuple of str,
                  or dict for nested nodes. Dotted keys are compound keys.
                - AttributeNode: deep copy of another node's contents
            name: Fully-qualified name of the node. Leave empty for a root.
            owner: The ConfigRoot this node belongs to, if any.

        Example:
            >>> AttributeNode({'db': {'host': 'localhost', 'ports': ['1', '2']}})
            >>> AttributeNode(other_node)  # copy
        """
        self._cells: dict[str, Cell] = {}
        self._name = name
        self._owner = owner

        if source is None:
            return
        if isinstance(source, dict):
            load_from_dict(self, source)
        elif isinstance(source, AttributeNode):
            load_from_node(self, source)
        else:
            raise TypeError(
                f"source must be dict or AttributeNode, not {type(source).__name__}"
            )

    # ==================== Special Methods ====================

    def __repr__(self) -> str:
        return f"AttributeNode({self._name!r}, keys={list(self._cells)!r})"

    def __str__(self) -> str:
        """Render the node as '{name: k1="v1" k2=[a,b] k3={name.k3: ...} }'.

        Keys are visited in sorted order, strings are C-quoted.
        """
        parts = ['{', self._name, ': ']
        for key in sorted(self._cells):
            cell = self._cells[key]
            parts.append(key)
            parts.append('=')
            if isinstance(cell, StringValue):
                parts.append('"' + quote_c(cell.text) + '"')
            elif isinstance(cell, StringListValue):
                parts.append(cell.render())
            else:
                parts.append(str(cell.node))
            parts.append(' ')
        parts.append('}')
        return ''.join(parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AttributeNode):
            return NotImplemented
        if self._cells.keys() != other._cells.keys():
            return False
        return all(cell == other._cells[key] for key, cell in self._cells.items())

    __hash__ = None  # type: ignore[assignment]

    def __len__(self) -> int:
        """Return the number of local keys."""
        return len(self._cells)

    def __iter__(self) -> Iterator[str]:
        """Iterate over local keys in insertion order."""
        return iter(self._cells)

    def __contains__(self, key: str) -> bool:
        return self.contains(key)

    @property
    def name(self) -> str:
        """Fully-qualified dotted name of this node."""
        return self._name

    @property
    def owner(self) -> ConfigRoot | None:
        """The ConfigRoot this node belongs to, or None for a detached tree."""
        return self._owner

    # ==================== Key Resolution ====================

    def _child_name(self, key: str) -> str:
        return f"{self._name}.{key}" if self._name else key

    def _new_child(self, key: str) -> AttributeNode:
        """Create an empty nested node under key, replacing nothing."""
        child = AttributeNode(name=self._child_name(key), owner=self._owner)
        self._cells[key] = SubtreeValue(child)
        return child

    def _htraverse(
        self, key: str, autocreate: bool = False
    ) -> tuple[AttributeNode | None, str]:
        """Resolve every segment but the last one.

        Args:
            key: Dotted key.
            autocreate: If True, create missing intermediate nodes.

        Returns:
            Tuple of (parent_node, final_segment). parent_node is None when
            an intermediate segment is missing or is not a subtree and
            autocreate is False.

        Raises:
            KeyFormatError: If the key is malformed.
            TypeConflictError: If autocreate is True and an intermediate
                segment holds a value instead of a subtree.
        """
        parts = split_key(key)
        current = self

        for i, part in enumerate(parts[:-1]):
            cell = current._cells.get(part)
            if isinstance(cell, SubtreeValue):
                current = cell.node
            elif cell is None:
                if not autocreate:
                    return None, parts[-1]
                current = current._new_child(part)
            else:
                if not autocreate:
                    return None, parts[-1]
                traversed = '.'.join(parts[:i + 1])
                raise TypeConflictError(
                    f"Illegal key {key!r}: {traversed!r} holds a value, not a subtree"
                )

        return current, parts[-1]

    def _lookup_cell(self, key: str) -> Cell | None:
        """Return the cell at key, or None. Never creates nodes."""
        parent, label = self._htraverse(key)
        if parent is None:
            return None
        return parent._cells.get(label)

    # ==================== Core API ====================

    def get(self, key: str, default: str | None = None) -> str | None:
        """Get the string value at key.

        A string list is returned in its bracketed form ('[a,b,c]').

        Args:
            key: Dotted key.
            default: Returned when the key is missing or holds a subtree.

        Returns:
            The string value, or default.
        """
        cell = self._lookup_cell(key)
        if isinstance(cell, (StringValue, StringListValue)):
            return cell.render()
        return default

    def __getitem__(self, key: str) -> str:
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value

    def __setitem__(self, key: str, value: str | Iterable[str]) -> None:
        self.set(key, value)

    def get_string_list(self, key: str) -> list[str] | None:
        """Get the string list at key.

        A single string is promoted to a one-element list.

        Returns:
            A new list, or None if the key is missing or holds a subtree.
        """
        cell = self._lookup_cell(key)
        if isinstance(cell, StringListValue):
            return list(cell.items)
        if isinstance(cell, StringValue):
            return [cell.text]
        return None

    def get_subtree(self, key: str) -> AttributeNode | None:
        """Get the nested node at key, or None. Never creates nodes."""
        cell = self._lookup_cell(key)
        if isinstance(cell, SubtreeValue):
            return cell.node
        return None

    def set(self, key: str, value: str | Iterable[str]) -> None:
        """Set a string or string list at key, creating intermediate nodes.

        Args:
            key: Dotted key.
            value: A str, or a list/tuple of str.

        Raises:
            KeyFormatError: If the key is malformed.
            TypeError: If value is not a str or a sequence of str.
            TypeConflictError: If an intermediate segment holds a value, or
                the final segment holds a subtree.

        Example:
            >>> node.set('server.port', '8080')
            >>> node.set('server.aliases', ['www', 'web'])
        """
        new_cell = make_cell(value)
        parent, label = self._htraverse(key, autocreate=True)
        if isinstance(parent._cells.get(label), SubtreeValue):
            raise TypeConflictError(
                f"Illegal key {key!r}: cannot overwrite a subtree with a value"
            )
        parent._cells[label] = new_cell

    def contains(self, key: str) -> bool:
        """True if any cell (value, list or subtree) exists at key."""
        return self._lookup_cell(key) is not None

    def remove(self, key: str) -> bool:
        """Remove the cell at key.

        Removing a subtree removes the whole nested tree.

        Returns:
            True if a cell was removed, False if the key did not resolve.
        """
        parent, label = self._htraverse(key)
        if parent is None or label not in parent._cells:
            return False
        del parent._cells[label]
        return True

    def ensure_subtree(self, key: str) -> AttributeNode:
        """Return the nested node at key, creating it (and its parents) if missing.

        Raises:
            TypeConflictError: If the key, or one of its parents, holds a value.
        """
        parent, label = self._htraverse(key, autocreate=True)
        cell = parent._cells.get(label)
        if cell is None:
            return parent._new_child(label)
        if isinstance(cell, SubtreeValue):
            return cell.node
        raise TypeConflictError(f"Illegal key {key!r}: holds a value, not a subtree")

    def _graft(self, label: str, source: AttributeNode) -> AttributeNode:
        """Store a copy of source under a local label, replacing any cell there."""
        child = AttributeNode(name=self._child_name(label), owner=self._owner)
        load_from_node(child, source)
        self._cells[label] = SubtreeValue(child)
        return child

    # ==================== Typed Access ====================

    def get_int(self, key: str, default: int | None = None) -> int | None:
        """Get the value at key parsed as an int.

        Raises:
            ValueFormatError: If the value is not an integer.
        """
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            raise ValueFormatError(f"{key!r} is not an integer: {value!r}") from None

    def get_float(self, key: str, default: float | None = None) -> float | None:
        """Get the value at key parsed as a float.

        Raises:
            ValueFormatError: If the value is not a number.
        """
        value = self.get(key)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            raise ValueFormatError(f"{key!r} is not a number: {value!r}") from None

    def get_bool(self, key: str, default: bool | None = None) -> bool | None:
        """Get the value at key parsed as a boolean.

        Accepts true/on/yes/1 and false/off/no/0, case-insensitive.

        Raises:
            ValueFormatError: If the value is not a recognized boolean word.
        """
        value = self.get(key)
        if value is None:
            return default
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        raise ValueFormatError(f"{key!r} is not a boolean: {value!r}")

    # ==================== Iteration ====================

    def keys(self) -> Iterator[str]:
        """Yield local keys in insertion order. Does not recurse."""
        yield from self._cells

    def items(self) -> Iterator[tuple[str, Cell]]:
        """Yield (local_key, cell) pairs in insertion order."""
        yield from self._cells.items()

    def walk(self, _prefix: str = '') -> Iterator[tuple[str, Cell]]:
        """Walk the tree in pre-order.

        Yields:
            Tuples of (dotted_key, cell), keys relative to this node.

        Example:
            >>> for key, cell in node.walk():
            ...     print(key, cell)
        """
        for label, cell in self._cells.items():
            path = f"{_prefix}.{label}" if _prefix else label
            yield path, cell
            if isinstance(cell, SubtreeValue):
                yield from cell.node.walk(path)

    def flatten(self) -> dict[str, str]:
        """Return a flat {dotted_key: string_value} view of the whole tree.

        Lists are rendered as '[a,b]'. Subtrees are expanded; an empty
        subtree contributes no entry.
        """
        return {
            path: cell.render()
            for path, cell in self.walk()
            if not isinstance(cell, SubtreeValue)
        }

    def copy(self) -> AttributeNode:
        """Return a detached deep copy of this node, as a root."""
        return AttributeNode(self)

    # ==================== Subscriptions ====================

    def subscribe(self, subscriber: Subscriber) -> None:
        """Register a subscriber for reloads of this node's path.

        The subscription is kept by fully-qualified path, so it carries over
        to the node that replaces this one on reload. No callback is made
        until the next reload.

        Raises:
            ConfStoreError: If the node does not belong to a ConfigRoot.
        """
        if self._owner is None:
            raise ConfStoreError(
                f"Node {self._name or '<root>'!r} is not attached to a ConfigRoot"
            )
        self._owner.subscribe(self._name, subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> bool:
        """Remove a subscriber from this node's path.

        Returns:
            True if the subscriber was registered.
        """
        if self._owner is None:
            return False
        return self._owner.unsubscribe(self._name, subscriber)
