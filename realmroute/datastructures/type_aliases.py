"""
Semantic type aliases for realmroute datastructures.

Routing code passes plain strings around; these aliases say which string is
which.
"""

from collections.abc import Mapping, Sequence

# Sharding-key namespace
type ShardingKey = str  # "/"-delimited path, e.g. "/clusterA/resourceB"
type PathSegment = str  # One token of a sharding key, e.g. "clusterA"
type SegmentPath = tuple[PathSegment, ...]

# Realm addressing
type RealmAddress = str  # Opaque connection string of a metadata-store realm

# Routing-data shapes
type ShardingKeyMapping = Mapping[ShardingKey, RealmAddress]
type RealmShardingKeys = Mapping[RealmAddress, Sequence[ShardingKey]]

# Statistics
type NodeCount = int
type TreeDepth = int
