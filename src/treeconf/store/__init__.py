# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Store package - The attribute tree and its subscriptions.

The package is organized into:
- core: AttributeNode with compound-key resolution, typed access and rendering
- loading: Functions for populating a node from a dict or another node
- subscription: Subscriber protocol and per-path subscription registries

Example:
    >>> from treeconf import AttributeNode
    >>> node = AttributeNode()
    >>> node.set('config.name', 'MyApp')
    >>> node.get('config.name')
    'MyApp'
"""

from .core import AttributeNode, split_key
from .subscription import CallbackSubscriber, Subscriber, SubscriptionRegistry

__all__ = [
    "AttributeNode",
    "CallbackSubscriber",
    "Subscriber",
    "SubscriptionRegistry",
    "split_key",
]
