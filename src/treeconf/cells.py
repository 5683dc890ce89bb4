# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Cell classes: the values stored under a key of an AttributeNode.

A cell is exactly one of:
    - StringValue: a single string
    - StringListValue: an ordered tuple of strings (duplicates allowed)
    - SubtreeValue: a nested AttributeNode, owned by the cell

The set is closed; code that inspects a cell dispatches over these three
classes and nothing else.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Union

if TYPE_CHECKING:
    from .store import AttributeNode


class StringValue:
    """A single string value.

    Example:
        >>> StringValue('localhost').text
        'localhost'
    """

    __slots__ = ('text',)

    def __init__(self, text: str) -> None:
        self.text = text

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StringValue):
            return NotImplemented
        return self.text == other.text

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"StringValue({self.text!r})"

    def render(self) -> str:
        """Return the flat string form of the value."""
        return self.text


class StringListValue:
    """An ordered list of strings, stored as a tuple.

    Example:
        >>> StringListValue(['a', 'b']).render()
        '[a,b]'
    """

    __slots__ = ('items',)

    def __init__(self, items: Iterable[str]) -> None:
        self.items: tuple[str, ...] = tuple(items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StringListValue):
            return NotImplemented
        return self.items == other.items

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"StringListValue({list(self.items)!r})"

    def render(self) -> str:
        """Return the bracketed, comma-joined form used by get() and flatten()."""
        return '[' + ','.join(self.items) + ']'


class SubtreeValue:
    """A nested AttributeNode.

    The cell owns the node: removing or replacing the cell drops the
    whole nested tree.
    """

    __slots__ = ('node',)

    def __init__(self, node: AttributeNode) -> None:
        self.node = node

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SubtreeValue):
            return NotImplemented
        return self.node == other.node

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"SubtreeValue({self.node.name!r}, keys={list(self.node.keys())!r})"


Cell = Union[StringValue, StringListValue, SubtreeValue]


def make_cell(value: str | Iterable[str]) -> StringValue | StringListValue:
    """Build a leaf cell from a Python value.

    Args:
        value: A string, or a list/tuple of strings.

    Returns:
        StringValue for a string, StringListValue for a sequence.

    Raises:
        TypeError: If value is neither a string nor a list/tuple of strings.
    """
    if isinstance(value, str):
        return StringValue(value)
    if isinstance(value, (list, tuple)):
        for item in value:
            if not isinstance(item, str):
                raise TypeError(
                    f"string list items must be str, not {type(item).__name__}"
                )
        return StringListValue(value)
    raise TypeError(
        f"value must be str or a list of str, not {type(value).__name__}"
    )


_C_ESCAPES = {
    '\\': '\\\\',
    '"': '\\"',
    '\n': '\\n',
    '\r': '\\r',
    '\t': '\\t',
}


def quote_c(text: str) -> str:
    """Escape a string the way a C string literal would show it.

    Backslash, double quote, newline, carriage return and tab get their
    usual escapes. Any other character below 0x20 or from 0x7f upward is
    written as a hex escape.

    Example:
        >>> quote_c('say "hi"\\n')
        'say \\\\"hi\\\\"\\\\n'
    """
    out = []
    for ch in text:
        escaped = _C_ESCAPES.get(ch)
        if escaped is not None:
            out.append(escaped)
            continue
        code = ord(ch)
        if 0x20 <= code < 0x7f:
            out.append(ch)
        elif code <= 0xff:
            out.append(f"\\x{code:02x}")
        elif code <= 0xffff:
            out.append(f"\\u{code:04x}")
        else:
            out.append(f"\\U{code:08x}")
    return ''.join(out)
