"""
Routing-data documents and the live routing-trie holder.

Routing data arrives as a document mapping each realm address to the
sharding keys it owns::

    {
        "zk-east:2181": ["/clusterA", "/clusterB/resource1"],
        "zk-west:2181": ["/clusterB/resource2"]
    }

It is inverted into a flat sharding key -> realm mapping, validated through
``RoutingTreeBuilder`` and frozen into a ``RoutingTrie``. ``RoutingDataHolder``
keeps the trie a service currently routes with and swaps in rebuilt tries
as whole objects, so readers never observe a partial update.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from threading import RLock

import orjson
from loguru import logger

from realmroute.core.errors import BuildError, ConflictError, RoutingDataFormatError
from realmroute.datastructures.path_util import is_valid_sharding_key
from realmroute.datastructures.routing_trie import RoutingTrie
from realmroute.datastructures.type_aliases import (
    RealmAddress,
    RealmShardingKeys,
    ShardingKey,
    ShardingKeyMapping,
)


def invert_realm_mapping(
    realm_to_keys: RealmShardingKeys,
) -> dict[ShardingKey, RealmAddress]:
    """Flatten ``realm -> [sharding keys]`` into ``sharding key -> realm``.

    Raises:
        ConflictError: if a sharding key is listed under two realms.
    """
    mapping: dict[ShardingKey, RealmAddress] = {}
    for realm_address, sharding_keys in realm_to_keys.items():
        for sharding_key in sharding_keys:
            existing = mapping.get(sharding_key)
            if existing is not None and existing != realm_address:
                raise ConflictError(
                    f"sharding key {sharding_key!r} is listed under realms "
                    f"{existing!r} and {realm_address!r}",
                    path=sharding_key,
                    existing_path=sharding_key,
                    existing_realm=existing,
                )
            mapping[sharding_key] = realm_address
    return mapping


def parse_routing_data(
    payload: object, *, strict: bool = False
) -> dict[ShardingKey, RealmAddress]:
    """Interpret a decoded routing-data document as a flat mapping."""
    if not isinstance(payload, dict):
        raise RoutingDataFormatError(
            f"routing data must be an object, got {type(payload).__name__}"
        )
    realm_to_keys: dict[RealmAddress, list[ShardingKey]] = {}
    for realm_address, sharding_keys in payload.items():
        if not realm_address:
            raise RoutingDataFormatError("realm address must be non-empty")
        if not isinstance(sharding_keys, list) or not all(
            isinstance(key, str) for key in sharding_keys
        ):
            raise RoutingDataFormatError(
                f"sharding keys of realm {realm_address!r} must be a list of strings"
            )
        if strict:
            for key in sharding_keys:
                if not is_valid_sharding_key(key):
                    raise RoutingDataFormatError(
                        f"invalid sharding key {key!r} for realm {realm_address!r}",
                        path=key,
                    )
        realm_to_keys[realm_address] = sharding_keys
    return invert_realm_mapping(realm_to_keys)


def load_routing_data(
    path: Path | str, *, strict: bool = False
) -> dict[ShardingKey, RealmAddress]:
    """Read a routing-data JSON document from disk."""
    raw = Path(path).read_bytes()
    try:
        payload = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise RoutingDataFormatError(
            f"routing data file {str(path)!r} is not valid JSON: {e}"
        ) from e
    mapping = parse_routing_data(payload, strict=strict)
    logger.debug("Loaded {} sharding keys from {}", len(mapping), path)
    return mapping


def build_routing_trie(mapping: ShardingKeyMapping) -> RoutingTrie:
    return RoutingTrie.from_mapping(mapping)


@dataclass(eq=False, slots=True)
class RoutingDataHolder:
    """
    Holds the routing trie a service currently routes with.

    Readers use ``current`` without locking. Writers build a complete new
    trie before ``swap`` replaces the reference, so a failed rebuild leaves
    the previous trie in service.
    """

    _trie: RoutingTrie = field(default_factory=RoutingTrie.empty)
    _write_lock: RLock = field(default_factory=RLock)
    generation: int = 0

    @property
    def current(self) -> RoutingTrie:
        return self._trie

    def swap(self, trie: RoutingTrie) -> RoutingTrie:
        """Install ``trie`` and return the one it replaced."""
        with self._write_lock:
            previous = self._trie
            self._trie = trie
            self.generation += 1
            stats = trie.get_statistics()
            logger.info(
                "Installed routing trie generation {}: sharding_keys={} realms={}",
                self.generation,
                stats.leaf_count,
                stats.realm_count,
            )
            return previous

    def reload_from_mapping(self, mapping: ShardingKeyMapping) -> RoutingTrie:
        try:
            trie = build_routing_trie(mapping)
        except (ConflictError, BuildError, ValueError) as e:
            logger.warning(
                "Routing data rejected, keeping generation {}: {}",
                self.generation,
                e,
            )
            raise
        self.swap(trie)
        return trie

    def reload_from_file(
        self, path: Path | str, *, strict: bool = False
    ) -> RoutingTrie:
        try:
            mapping = load_routing_data(path, strict=strict)
        except (OSError, RoutingDataFormatError, ConflictError) as e:
            logger.warning(
                "Could not load routing data from {}, keeping generation {}: {}",
                path,
                self.generation,
                e,
            )
            raise
        return self.reload_from_mapping(mapping)

    def resolve_realm(self, path: ShardingKey) -> RealmAddress:
        return self._trie.resolve_realm(path)

    def get_all_mappings_under_path(
        self, path: ShardingKey
    ) -> dict[ShardingKey, RealmAddress]:
        return self._trie.get_all_mappings_under_path(path)
