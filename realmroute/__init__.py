"""
realmroute - metadata-store routing index.

Maps hierarchical sharding keys (``/clusterA/resourceB``) to the address of
the metadata-store realm owning them, so one client can address many
independent coordination ensembles as a single namespace.

## Quick Start

```python
from realmroute import RoutingTreeBuilder

builder = RoutingTreeBuilder()
builder.insert("/clusterA", "zk-east:2181")
builder.insert("/clusterB/resource1", "zk-west:2181")
trie = builder.build()

trie.resolve_realm("/clusterA/some/znode")  # "zk-east:2181"
trie.get_all_mappings_under_path("/clusterB")  # {"/clusterB/resource1": "zk-west:2181"}
```
"""

from realmroute.core.errors import (
    BuildError,
    ConflictError,
    NoRealmFoundError,
    PathNotFoundError,
    RoutingDataError,
    RoutingDataFormatError,
)
from realmroute.core.routing_data import (
    RoutingDataHolder,
    build_routing_trie,
    invert_realm_mapping,
    load_routing_data,
    parse_routing_data,
)
from realmroute.datastructures import (
    RoutingTreeBuilder,
    RoutingTrie,
    RoutingTrieNode,
    RoutingTrieStatistics,
    ShardingKeyTreeNode,
    normalize_path,
)

__version__ = "0.1.0"

__all__ = [
    "BuildError",
    "ConflictError",
    "NoRealmFoundError",
    "PathNotFoundError",
    "RoutingDataError",
    "RoutingDataFormatError",
    "RoutingDataHolder",
    "RoutingTreeBuilder",
    "RoutingTrie",
    "RoutingTrieNode",
    "RoutingTrieStatistics",
    "ShardingKeyTreeNode",
    "build_routing_trie",
    "invert_realm_mapping",
    "load_routing_data",
    "normalize_path",
    "parse_routing_data",
]
