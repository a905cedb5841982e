import sys
from dataclasses import dataclass
from pathlib import Path

from jsonargparse import CLI
from loguru import logger
from rich.console import Console
from rich.table import Table

from realmroute.core.config import RealmRouteSettings
from realmroute.core.errors import RoutingDataError
from realmroute.core.logging import configure_logging_from_settings
from realmroute.core.routing_data import build_routing_trie, load_routing_data
from realmroute.datastructures.routing_trie import RoutingTrie

console = Console()


@dataclass(slots=True)
class RealmRouteCLI:
    """Inspect metadata-store routing data from the command line."""

    data_file: Path | None = None
    strict: bool | None = None
    log_level: str | None = None

    def _settings(self) -> RealmRouteSettings:
        overrides = {
            name: value
            for name, value in (
                ("routing_data_file", self.data_file),
                ("strict_sharding_keys", self.strict),
                ("log_level", self.log_level),
            )
            if value is not None
        }
        settings = RealmRouteSettings(**overrides)
        configure_logging_from_settings(settings)
        return settings

    def _load_trie(self) -> RoutingTrie:
        settings = self._settings()
        if settings.routing_data_file is None:
            logger.error(
                "No routing data file given (use --data_file or REALMROUTE_ROUTING_DATA_FILE)"
            )
            sys.exit(2)
        try:
            mapping = load_routing_data(
                settings.routing_data_file, strict=settings.strict_sharding_keys
            )
            return build_routing_trie(mapping)
        except (OSError, RoutingDataError) as e:
            logger.error("Failed to load routing data: {}", e)
            sys.exit(1)

    def resolve(self, path: str) -> None:
        """Print the realm address that governs a sharding key.

        Args:
            path: The sharding key to route, e.g. /clusterA/resourceB.
        """
        trie = self._load_trie()
        try:
            console.print(trie.resolve_realm(path), markup=False, highlight=False)
        except RoutingDataError as e:
            logger.error("{}", e)
            sys.exit(1)

    def export(self, path: str = "/", fmt: str = "table") -> None:
        """Print every sharding key under a path with its realm address.

        Args:
            path: Subtree to export; "/" exports everything.
            fmt: Output format, "table" or "json".
        """
        mappings = self._load_trie().get_all_mappings_under_path(path)
        if fmt == "json":
            console.print_json(data=dict(sorted(mappings.items())))
            return
        table = Table(title=f"Sharding keys under {path}")
        table.add_column("Sharding key")
        table.add_column("Realm address")
        for sharding_key, realm_address in sorted(mappings.items()):
            table.add_row(sharding_key, realm_address)
        console.print(table)

    def stats(self) -> None:
        """Print the shape of the routing trie."""
        stats = self._load_trie().get_statistics()
        table = Table(title="Routing trie")
        table.add_column("Metric")
        table.add_column("Value", justify="right")
        table.add_row("Nodes", str(stats.total_nodes))
        table.add_row("Sharding keys", str(stats.leaf_count))
        table.add_row("Realms", str(stats.realm_count))
        table.add_row("Max depth", str(stats.max_leaf_depth))
        console.print(table)

    def validate(self) -> None:
        """Check that the routing data builds into a consistent trie."""
        stats = self._load_trie().get_statistics()
        logger.info(
            "Routing data is valid: sharding_keys={} realms={}",
            stats.leaf_count,
            stats.realm_count,
        )


def main() -> None:
    CLI(RealmRouteCLI, as_dict=False)  # type: ignore[no-untyped-call]


if __name__ == "__main__":
    main()
