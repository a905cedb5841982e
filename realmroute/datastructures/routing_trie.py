"""
Immutable routing trie for metadata-store realm lookup.

A routing trie maps regions of the sharding-key namespace to the realm that
owns them. Every node is either a leaf, carrying the realm address of the
whole subtree rooted at it, or an internal node with at least one child.
The only exception is the root of an empty trie, which is an internal node
without children.

Tries are never mutated after construction. A live service replaces the
whole trie when routing data changes (see ``RoutingDataHolder``), so any
number of readers can query a trie without locking.

Examples:
    >>> trie = RoutingTrie.from_mapping({"/a/x": "zk-1:2181", "/b": "zk-2:2181"})
    >>> trie.resolve_realm("/a/x/some/znode")
    'zk-1:2181'
    >>> trie.get_all_mappings_under_path("/a")
    {'/a/x': 'zk-1:2181'}
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from realmroute.core.errors import BuildError, NoRealmFoundError, PathNotFoundError
from realmroute.datastructures.path_util import (
    PATH_SEPARATOR,
    normalize_path,
)
from realmroute.datastructures.type_aliases import (
    NodeCount,
    PathSegment,
    RealmAddress,
    ShardingKey,
    ShardingKeyMapping,
    TreeDepth,
)

_EMPTY_CHILDREN: Mapping[PathSegment, RoutingTrieNode] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class RoutingTrieStatistics:
    """Shape summary of a routing trie."""

    total_nodes: NodeCount
    leaf_count: NodeCount
    realm_count: int
    max_leaf_depth: TreeDepth


@dataclass(frozen=True, slots=True)
class RoutingTrieNode:
    """
    A node of the routing trie.

    ``children`` is wrapped in a read-only mapping on construction. Use the
    ``leaf``, ``internal`` and ``empty_root`` factories; only they check that a
    non-root internal node has children.
    """

    children: Mapping[PathSegment, RoutingTrieNode] = field(
        default_factory=lambda: _EMPTY_CHILDREN
    )
    realm_address: RealmAddress | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.children, MappingProxyType):
            object.__setattr__(self, "children", MappingProxyType(dict(self.children)))
        if self.realm_address is not None and self.children:
            raise BuildError(
                f"leaf for realm {self.realm_address!r} cannot have children"
            )

    @property
    def is_leaf(self) -> bool:
        return self.realm_address is not None

    @classmethod
    def leaf(cls, realm_address: RealmAddress) -> RoutingTrieNode:
        return cls(realm_address=realm_address)

    @classmethod
    def internal(
        cls, children: Mapping[PathSegment, RoutingTrieNode]
    ) -> RoutingTrieNode:
        if not children:
            raise BuildError("internal node must have at least one child")
        return cls(children=children)

    @classmethod
    def empty_root(cls) -> RoutingTrieNode:
        """Root of a trie without mappings, the only childless internal node."""
        return cls()


@dataclass(frozen=True, slots=True)
class RoutingTrie:
    """
    Query-optimized, read-only routing index.

    Build one with ``RoutingTreeBuilder.build()`` or ``RoutingTrie.from_mapping``.
    """

    root: RoutingTrieNode = field(default_factory=RoutingTrieNode.empty_root)

    @classmethod
    def empty(cls) -> RoutingTrie:
        return cls()

    @classmethod
    def from_mapping(cls, mapping: ShardingKeyMapping) -> RoutingTrie:
        """Build a trie from a flat sharding key -> realm address mapping."""
        from realmroute.datastructures.sharding_key_tree import RoutingTreeBuilder

        builder = RoutingTreeBuilder()
        builder.insert_all(mapping)
        return builder.build()

    def find_node(self, path: ShardingKey) -> RoutingTrieNode:
        """
        Return the node the path points to.

        Raises:
            PathNotFoundError: if any segment of the path is missing.
        """
        node = self.root
        for segment in normalize_path(path):
            child = node.children.get(segment)
            if child is None:
                raise PathNotFoundError(
                    f"path {path!r} is missing from the routing trie", path=path
                )
            node = child
        return node

    def resolve_realm(self, path: ShardingKey) -> RealmAddress:
        """
        Return the realm of the nearest leaf along the path.

        Segments below that leaf are not consumed: every key inside an
        ownership region routes to the region's realm.

        Raises:
            NoRealmFoundError: if no leaf lies on the path.
        """
        node = self.root
        if node.realm_address is not None:
            return node.realm_address
        for segment in normalize_path(path):
            child = node.children.get(segment)
            if child is None:
                break
            if child.realm_address is not None:
                return child.realm_address
            node = child
        raise NoRealmFoundError(f"no realm governs path {path!r}", path=path)

    def get_metadata_store_realm(self, path: ShardingKey) -> RealmAddress:
        return self.resolve_realm(path)

    def get_all_mappings_under_path(
        self, path: ShardingKey
    ) -> dict[ShardingKey, RealmAddress]:
        """
        Return every sharding key at or below ``path`` with its realm.

        An unknown path yields an empty mapping rather than an error.
        Keys are ``path`` (one trailing separator removed) followed by the
        segments walked, so ``"/a"`` and ``"/a/"`` both yield ``"/a/x"`` while
        ``"a"`` yields ``"a/x"``. A root leaf exported from ``"/"`` is keyed ``""``.
        """
        try:
            start = self.find_node(path)
        except PathNotFoundError:
            return {}

        mappings: dict[ShardingKey, RealmAddress] = {}
        base = path[:-1] if path.endswith(PATH_SEPARATOR) else path
        stack: list[tuple[RoutingTrieNode, ShardingKey]] = [(start, base)]
        while stack:
            node, node_path = stack.pop()
            if node.realm_address is not None:
                mappings[node_path] = node.realm_address
                continue
            for segment, child in node.children.items():
                stack.append((child, f"{node_path}/{segment}"))
        return mappings

    def export_subtree(self, path: ShardingKey) -> dict[ShardingKey, RealmAddress]:
        return self.get_all_mappings_under_path(path)

    def contains_key_realm_pair(
        self, path: ShardingKey, realm_address: RealmAddress
    ) -> bool:
        """True if ``path`` is itself a sharding key owned by ``realm_address``."""
        try:
            node = self.find_node(path)
        except PathNotFoundError:
            return False
        return node.is_leaf and node.realm_address == realm_address

    def is_sharding_key_insertion_valid(self, path: ShardingKey) -> bool:
        """True if a new mapping at ``path`` would not overlap existing ones."""
        node = self.root
        if node.is_leaf:
            return False
        segments = normalize_path(path)
        if not segments:
            return not node.children
        for segment in segments:
            child = node.children.get(segment)
            if child is None:
                return True
            if child.is_leaf:
                return False
            node = child
        # The path names an existing internal node, i.e. it would enclose
        # other sharding keys.
        return False

    def get_statistics(self) -> RoutingTrieStatistics:
        total_nodes = 0
        leaf_count = 0
        realms: set[RealmAddress] = set()
        max_leaf_depth = 0
        stack: list[tuple[RoutingTrieNode, TreeDepth]] = [(self.root, 0)]
        while stack:
            node, depth = stack.pop()
            total_nodes += 1
            if node.realm_address is not None:
                leaf_count += 1
                realms.add(node.realm_address)
                max_leaf_depth = max(max_leaf_depth, depth)
                continue
            stack.extend((child, depth + 1) for child in node.children.values())
        return RoutingTrieStatistics(
            total_nodes=total_nodes,
            leaf_count=leaf_count,
            realm_count=len(realms),
            max_leaf_depth=max_leaf_depth,
        )
