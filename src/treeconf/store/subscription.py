# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Subscribers and per-path subscription registries.

A subscriber takes part in the two-phase reload protocol:

    - validate(current, replacement): check the replacement subtree.
      Return None to accept, return a ValidationError to reject. Raising
      a ValidationError is accepted too.
    - commit(current, replacement): apply the change. Called for every
      subscriber after all validations passed, even if nothing changed.

current and replacement are AttributeNode instances, or None when the
subtree does not exist before (or after) the reload.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Iterator, Optional, Protocol, runtime_checkable

from ..exceptions import ValidationError

if TYPE_CHECKING:
    from .core import AttributeNode


@runtime_checkable
class Subscriber(Protocol):
    """Protocol for objects that observe reloads of a node."""

    def validate(
        self,
        current: AttributeNode | None,
        replacement: AttributeNode | None,
    ) -> ValidationError | None:
        ...

    def commit(
        self,
        current: AttributeNode | None,
        replacement: AttributeNode | None,
    ) -> None:
        ...


ValidateCallback = Callable[
    [Optional['AttributeNode'], Optional['AttributeNode']], Optional[ValidationError]
]
CommitCallback = Callable[[Optional['AttributeNode'], Optional['AttributeNode']], None]


class CallbackSubscriber:
    """Subscriber built from two plain callables.

    Example:
        >>> node.subscribe(CallbackSubscriber(commit=lambda cur, new: print(new)))
    """

    __slots__ = ('_validate', '_commit')

    def __init__(
        self,
        commit: CommitCallback,
        validate: ValidateCallback | None = None,
    ) -> None:
        self._commit = commit
        self._validate = validate

    def __repr__(self) -> str:
        return f"CallbackSubscriber(commit={self._commit!r})"

    def validate(
        self,
        current: AttributeNode | None,
        replacement: AttributeNode | None,
    ) -> ValidationError | None:
        if self._validate is None:
            return None
        return self._validate(current, replacement)

    def commit(
        self,
        current: AttributeNode | None,
        replacement: AttributeNode | None,
    ) -> None:
        self._commit(current, replacement)


class SubscriptionRegistry:
    """Ordered list of subscribers registered for one fully-qualified path.

    Registration order is notification order. The same subscriber may be
    registered only once per path; a second add() is ignored.
    """

    __slots__ = ('path', '_subscribers')

    def __init__(self, path: str) -> None:
        self.path = path
        self._subscribers: list[Subscriber] = []

    def __repr__(self) -> str:
        return f"SubscriptionRegistry({self.path!r}, {len(self._subscribers)} subscribers)"

    def __len__(self) -> int:
        return len(self._subscribers)

    def __iter__(self) -> Iterator[Subscriber]:
        return iter(self._subscribers)

    def add(self, subscriber: Subscriber) -> None:
        """Append a subscriber."""
        if not isinstance(subscriber, Subscriber):
            raise TypeError(
                f"subscriber must define validate() and commit(), "
                f"got {type(subscriber).__name__}"
            )
        if not any(s is subscriber for s in self._subscribers):
            self._subscribers.append(subscriber)

    def remove(self, subscriber: Subscriber) -> bool:
        """Remove a subscriber. Returns True if it was registered."""
        for i, s in enumerate(self._subscribers):
            if s is subscriber:
                del self._subscribers[i]
                return True
        return False

    def validate(
        self,
        current: AttributeNode | None,
        replacement: AttributeNode | None,
    ) -> ValidationError | None:
        """Run validate() on every subscriber, stopping at the first rejection.

        Returns:
            None if every subscriber accepted, otherwise the first
            ValidationError, with its path set to this registry's path.
        """
        for subscriber in self._subscribers:
            try:
                error = subscriber.validate(current, replacement)
            except ValidationError as e:
                error = e
            if error is not None:
                if not isinstance(error, ValidationError):
                    raise TypeError(
                        f"{subscriber!r}.validate() must return None or a "
                        f"ValidationError, got {type(error).__name__}"
                    )
                if error.path is None:
                    error.path = self.path
                return error
        return None

    def commit(
        self,
        current: AttributeNode | None,
        replacement: AttributeNode | None,
    ) -> None:
        """Run commit() on every subscriber in registration order."""
        for subscriber in self._subscribers:
            subscriber.commit(current, replacement)
