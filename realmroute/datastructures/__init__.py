"""
realmroute datastructures.

- path_util: sharding-key normalization
- ShardingKeyTreeNode / RoutingTreeBuilder: mutable construction-time tree
- RoutingTrie / RoutingTrieNode: immutable query-time routing index
"""

from __future__ import annotations

from .path_util import (
    PATH_SEPARATOR,
    ROOT_PATH,
    is_valid_sharding_key,
    join_path,
    normalize_path,
)
from .routing_trie import RoutingTrie, RoutingTrieNode, RoutingTrieStatistics
from .sharding_key_tree import (
    REALM_ADDRESS_KEY,
    RoutingTreeBuilder,
    ShardingKeyTreeNode,
)

__all__ = [
    "PATH_SEPARATOR",
    "REALM_ADDRESS_KEY",
    "ROOT_PATH",
    "RoutingTreeBuilder",
    "RoutingTrie",
    "RoutingTrieNode",
    "RoutingTrieStatistics",
    "ShardingKeyTreeNode",
    "is_valid_sharding_key",
    "join_path",
    "normalize_path",
]
