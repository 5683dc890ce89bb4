# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""ConfigRoot - Owner of the live attribute tree and its reload cycle.

A ConfigRoot holds the current root AttributeNode and one
SubscriptionRegistry per subscribed path. It replaces the tree through a
two-phase protocol:

    1. A candidate tree is built as a copy of the live tree with the
       reloaded path replaced. The live tree is not touched.
    2. Every subscriber registered at or below the reloaded path is asked
       to validate(current, replacement). One rejection aborts the reload.
    3. The live root is swapped for the candidate and every subscriber is
       asked to commit(current, replacement), whether its subtree changed
       or not.

Paths are visited parent before child, siblings by key name. Within a
path, subscribers are called in registration order.

A failing commit is not rolled back: subscribers that committed before it
keep their new state. Subscribers must make commit effectively infallible.

Example:
    >>> config = ConfigRoot()
    >>> config.load_initial(AttributeNode({'log': {'level': 'info'}}))
    >>> config.subscribe('log', my_subscriber)
    >>> config.reload(AttributeNode({'log': {'level': 'debug'}}))
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator

from .exceptions import ValidationError
from .store import AttributeNode, Subscriber, SubscriptionRegistry, split_key

logger = logging.getLogger(__name__)


def _path_order(path: str) -> tuple[str, ...]:
    return tuple(path.split('.')) if path else ()


class ConfigRoot:
    """Top-level owner of a configuration tree.

    Attributes:
        root: The live root AttributeNode. Replaced (not mutated) by reload.
    """

    __slots__ = ('_root', '_registries')

    def __init__(self) -> None:
        self._root = AttributeNode(owner=self)
        self._registries: dict[str, SubscriptionRegistry] = {}

    def __repr__(self) -> str:
        return f"ConfigRoot(keys={list(self._root.keys())!r}, subscribed={sorted(self._registries)!r})"

    @property
    def root(self) -> AttributeNode:
        """The live root node."""
        return self._root

    # ==================== Subscriptions ====================

    def subscribe(self, path: str, subscriber: Subscriber) -> None:
        """Register a subscriber for the subtree at path ('' for the root).

        The path does not need to exist yet.
        """
        if path:
            split_key(path)
        registry = self._registries.get(path)
        if registry is None:
            registry = self._registries[path] = SubscriptionRegistry(path)
        registry.add(subscriber)

    def unsubscribe(self, path: str, subscriber: Subscriber) -> bool:
        """Remove a subscriber from path. Returns True if it was registered."""
        registry = self._registries.get(path)
        if registry is None:
            return False
        removed = registry.remove(subscriber)
        if not len(registry):
            del self._registries[path]
        return removed

    def registries(self, path: str = '') -> Iterator[SubscriptionRegistry]:
        """Yield the non-empty registries at or below path, parent before child."""
        base = _path_order(path)
        for key in sorted(self._registries, key=_path_order):
            registry = self._registries[key]
            if len(registry) and _path_order(key)[:len(base)] == base:
                yield registry

    # ==================== Reload ====================

    @staticmethod
    def _node_at(tree: AttributeNode, path: str) -> AttributeNode | None:
        if not path:
            return tree
        return tree.get_subtree(path)

    def _build_candidate(self, tree: AttributeNode | None, path: str) -> AttributeNode:
        """Return a copy of the live tree with the subtree at path replaced."""
        if not path:
            if tree is None:
                raise TypeError("the root cannot be replaced by None")
            return AttributeNode(tree, owner=self)

        candidate = AttributeNode(self._root, owner=self)
        parent, label = candidate._htraverse(path, autocreate=True)
        if tree is None:
            parent.remove(label)
        else:
            parent._graft(label, tree)
        return candidate

    def _validate_all(
        self, candidate: AttributeNode, path: str
    ) -> tuple[list[SubscriptionRegistry], ValidationError | None]:
        affected = list(self.registries(path))
        for registry in affected:
            current = self._node_at(self._root, registry.path)
            replacement = self._node_at(candidate, registry.path)
            logger.debug("Validating %r (%d subscribers)", registry.path, len(registry))
            error = registry.validate(current, replacement)
            if error is not None:
                return affected, error
        return affected, None

    def check(self, tree: AttributeNode | None, path: str = '') -> ValidationError | None:
        """Run the validate phase of a reload without committing anything.

        Returns:
            None if every affected subscriber accepts, otherwise the first
            ValidationError.
        """
        candidate = self._build_candidate(tree, path)
        return self._validate_all(candidate, path)[1]

    def reload(self, tree: AttributeNode | None, path: str = '') -> None:
        """Replace the subtree at path (the whole root by default) with tree.

        Args:
            tree: The freshly parsed replacement. None removes the subtree
                at a non-empty path.
            path: Dotted path of the subtree to replace.

        Raises:
            ValidationError: The first rejection from a subscriber. The live
                tree is unchanged and no subscriber was committed.
            TypeConflictError: If a parent segment of path holds a value.
        """
        candidate = self._build_candidate(tree, path)
        affected, error = self._validate_all(candidate, path)
        if error is not None:
            logger.warning("Config reload rejected: %s", error)
            raise error

        previous = self._root
        self._root = candidate
        self._commit_all(affected, previous, path)
        logger.info("Config reloaded at %r (%d subscribed paths)", path or '<root>', len(affected))

    def load_initial(self, tree: AttributeNode) -> None:
        """Install tree as the root without validation.

        Every registered subscriber is committed with current=None.
        """
        self._root = AttributeNode(tree, owner=self)
        self._commit_all(list(self.registries()), None, '')

    def _commit_all(
        self,
        affected: Iterable[SubscriptionRegistry],
        previous: AttributeNode | None,
        path: str,
    ) -> None:
        for registry in affected:
            current = self._node_at(previous, registry.path) if previous is not None else None
            replacement = self._node_at(self._root, registry.path)
            logger.debug("Committing %r (%d subscribers)", registry.path, len(registry))
            try:
                registry.commit(current, replacement)
            except Exception:
                logger.critical(
                    "Commit failed for %r during reload of %r; earlier commits are not rolled back",
                    registry.path, path or '<root>', exc_info=True,
                )
                raise

    # ==================== Tree Delegates ====================

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._root.get(key, default)

    def get_string_list(self, key: str) -> list[str] | None:
        return self._root.get_string_list(key)

    def get_subtree(self, key: str) -> AttributeNode | None:
        return self._root.get_subtree(key)

    def set(self, key: str, value: str | Iterable[str]) -> None:
        self._root.set(key, value)

    def contains(self, key: str) -> bool:
        return self._root.contains(key)

    def remove(self, key: str) -> bool:
        return self._root.remove(key)

    def keys(self) -> Iterator[str]:
        return self._root.keys()

    def __contains__(self, key: str) -> bool:
        return self._root.contains(key)

    def __str__(self) -> str:
        return str(self._root)
