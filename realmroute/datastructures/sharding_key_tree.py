"""
Mutable sharding-key tree used while routing data is being assembled.

``RoutingTreeBuilder`` accepts sharding key -> realm assignments one at a
time, rejects assignments whose ownership regions would overlap, and freezes
the result into a ``RoutingTrie``. A builder is owned by a single writer;
only the frozen trie is shared with readers.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from loguru import logger

from realmroute.core.errors import BuildError, ConflictError
from realmroute.datastructures.path_util import ROOT_PATH, join_path, normalize_path
from realmroute.datastructures.routing_trie import RoutingTrie, RoutingTrieNode
from realmroute.datastructures.type_aliases import (
    PathSegment,
    RealmAddress,
    ShardingKey,
    ShardingKeyMapping,
)

# Data-bag key holding the realm address staged on an owning node
REALM_ADDRESS_KEY = "realm_address"


@dataclass(slots=True)
class ShardingKeyTreeNode:
    """A node of the construction-time tree.

    ``data`` is a free-form attribute bag; the builder stages a node's realm
    address there under ``REALM_ADDRESS_KEY``.
    """

    path: ShardingKey
    children: dict[PathSegment, ShardingKeyTreeNode] = field(default_factory=dict)
    data: dict[str, str] = field(default_factory=dict)

    def set_child(self, segment: PathSegment, node: ShardingKeyTreeNode) -> None:
        self.children[segment] = node

    def set_data_entry(self, key: str, value: str) -> None:
        self.data[key] = value

    @property
    def staged_realm(self) -> RealmAddress | None:
        return self.data.get(REALM_ADDRESS_KEY)

    def iter_owned_descendants(self) -> Iterator[ShardingKeyTreeNode]:
        """Yield descendant nodes that stage a realm, depth first."""
        stack = list(self.children.values())
        while stack:
            node = stack.pop()
            if node.staged_realm is not None:
                yield node
            stack.extend(node.children.values())


@dataclass(slots=True)
class RoutingTreeBuilder:
    """Incrementally builds a routing trie from sharding key assignments."""

    root: ShardingKeyTreeNode = field(
        default_factory=lambda: ShardingKeyTreeNode(path=ROOT_PATH)
    )
    mapping_count: int = 0

    def __len__(self) -> int:
        return self.mapping_count

    def insert(self, path: ShardingKey, realm_address: RealmAddress) -> None:
        """
        Assign ``realm_address`` as the owner of ``path`` and everything below it.

        Re-inserting an identical assignment is a no-op. A failed insert
        leaves the builder unchanged.

        Raises:
            ConflictError: if an ancestor of ``path`` is already owned, if
                ``path`` is owned by a different realm, or if mappings exist
                below ``path``.
            ValueError: if ``realm_address`` is empty.
        """
        if not realm_address:
            raise ValueError(f"realm address for {path!r} must be non-empty")

        segments = normalize_path(path)
        sharding_key = join_path(segments)

        # Walk the existing nodes: no ancestor may own the path already.
        current = self.root
        missing_from = len(segments)
        for index, segment in enumerate(segments):
            owner = current.staged_realm
            if owner is not None:
                raise ConflictError(
                    f"cannot map {sharding_key!r} to {realm_address!r}: "
                    f"ancestor {current.path!r} is owned by {owner!r}",
                    path=sharding_key,
                    existing_path=current.path,
                    existing_realm=owner,
                )
            child = current.children.get(segment)
            if child is None:
                missing_from = index
                break
            current = child
        else:
            self._check_terminal(current, sharding_key, realm_address)
            if current.staged_realm == realm_address:
                return

        for index in range(missing_from, len(segments)):
            child = ShardingKeyTreeNode(path=join_path(segments[: index + 1]))
            current.set_child(segments[index], child)
            current = child

        current.set_data_entry(REALM_ADDRESS_KEY, realm_address)
        self.mapping_count += 1
        logger.debug(
            "Staged sharding key: path={} realm={}", sharding_key, realm_address
        )

    def insert_all(self, mapping: ShardingKeyMapping) -> None:
        for path, realm_address in mapping.items():
            self.insert(path, realm_address)

    def build(self) -> RoutingTrie:
        """
        Freeze the tree into an immutable ``RoutingTrie``.

        Raises:
            BuildError: if the tree is internally inconsistent.
        """
        trie = RoutingTrie(root=self._freeze(self.root, is_root=True))
        logger.debug("Built routing trie with {} sharding keys", self.mapping_count)
        return trie

    def _check_terminal(
        self,
        node: ShardingKeyTreeNode,
        sharding_key: ShardingKey,
        realm_address: RealmAddress,
    ) -> None:
        owner = node.staged_realm
        if owner is not None and owner != realm_address:
            raise ConflictError(
                f"cannot map {sharding_key!r} to {realm_address!r}: "
                f"already owned by {owner!r}",
                path=sharding_key,
                existing_path=node.path,
                existing_realm=owner,
            )
        if owner is None and node.children:
            descendant = next(node.iter_owned_descendants(), None)
            raise ConflictError(
                f"cannot map {sharding_key!r} to {realm_address!r}: "
                "it would enclose existing sharding keys",
                path=sharding_key,
                existing_path=descendant.path if descendant else None,
                existing_realm=descendant.staged_realm if descendant else None,
            )

    def _freeze(
        self, node: ShardingKeyTreeNode, *, is_root: bool = False
    ) -> RoutingTrieNode:
        realm_address = node.staged_realm
        if realm_address is not None:
            if node.children:
                raise BuildError(
                    f"owned node {node.path!r} has children", path=node.path
                )
            return RoutingTrieNode.leaf(realm_address)
        if not node.children:
            if is_root:
                return RoutingTrieNode.empty_root()
            raise BuildError(
                f"internal node {node.path!r} has no children", path=node.path
            )
        return RoutingTrieNode.internal(
            {
                segment: self._freeze(child)
                for segment, child in node.children.items()
            }
        )
