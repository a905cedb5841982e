"""
Tests for the immutable routing trie and its queries.

Covers exact node lookup, nearest-realm resolution, subtree export, the
overlap checks, and property-based tests over randomly generated
non-overlapping routing data.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, rule

from realmroute.core.errors import (
    BuildError,
    ConflictError,
    NoRealmFoundError,
    PathNotFoundError,
)
from realmroute.datastructures.path_util import join_path
from realmroute.datastructures.routing_trie import (
    RoutingTrie,
    RoutingTrieNode,
    RoutingTrieStatistics,
)
from realmroute.datastructures.sharding_key_tree import RoutingTreeBuilder


def _overlaps(a: tuple[str, ...], b: tuple[str, ...]) -> bool:
    shorter = min(len(a), len(b))
    return a[:shorter] == b[:shorter]


# Hypothesis strategies for generating routing data
segments = st.text(
    alphabet=st.characters(min_codepoint=97, max_codepoint=122),
    min_size=1,
    max_size=4,
)
segment_paths = st.lists(segments, min_size=1, max_size=4).map(tuple)
realm_addresses = st.sampled_from(["zk-1:2181", "zk-2:2181", "zk-3:2181"])


@st.composite
def routing_data(draw, max_keys=12):
    """Generate a non-overlapping sharding key -> realm mapping."""
    accepted: list[tuple[str, ...]] = []
    for candidate in draw(st.lists(segment_paths, max_size=max_keys)):
        if not any(_overlaps(candidate, existing) for existing in accepted):
            accepted.append(candidate)
    return {join_path(path): draw(realm_addresses) for path in accepted}


@pytest.fixture
def trie() -> RoutingTrie:
    return RoutingTrie.from_mapping(
        {"/a/x": "zk-1", "/a/y": "zk-2", "/b": "zk-3", "/c/d/e": "zk-1"}
    )


class TestRoutingTrieNode:
    def test_leaf_and_internal_constructors(self):
        leaf = RoutingTrieNode.leaf("zk-1")
        internal = RoutingTrieNode.internal({"x": leaf})
        assert leaf.is_leaf
        assert not internal.is_leaf
        assert internal.children["x"] is leaf

    def test_children_are_read_only(self):
        source = {"x": RoutingTrieNode.leaf("zk-1")}
        node = RoutingTrieNode.internal(source)
        source["y"] = RoutingTrieNode.leaf("zk-2")
        assert "y" not in node.children
        with pytest.raises(TypeError):
            node.children["z"] = RoutingTrieNode.leaf("zk-3")  # type: ignore[index]

    def test_leaf_with_children_rejected(self):
        with pytest.raises(BuildError):
            RoutingTrieNode(
                children={"x": RoutingTrieNode.leaf("zk-1")}, realm_address="zk-2"
            )

    def test_internal_factory_requires_children(self):
        with pytest.raises(BuildError):
            RoutingTrieNode.internal({})

    def test_empty_root(self):
        root = RoutingTrieNode.empty_root()
        assert not root.is_leaf
        assert root.children == {}
        assert RoutingTrie.empty().root == root


class TestFindNode:
    def test_root_paths(self, trie):
        assert trie.find_node("/") is trie.root
        assert trie.find_node("") is trie.root

    def test_internal_and_leaf_nodes(self, trie):
        assert not trie.find_node("/a").is_leaf
        assert trie.find_node("/a/x").realm_address == "zk-1"
        assert trie.find_node("/c/d").children.keys() == {"e"}

    def test_missing_path(self, trie):
        with pytest.raises(PathNotFoundError) as exc_info:
            trie.find_node("/a/z")
        assert exc_info.value.path == "/a/z"

    def test_path_below_leaf_is_not_a_node(self):
        trie = RoutingTrie.from_mapping({"/a": "zk-1"})
        with pytest.raises(PathNotFoundError):
            trie.find_node("/a/b/c")

    def test_empty_trie_root(self):
        trie = RoutingTrie.empty()
        root = trie.find_node("/")
        assert root is trie.root
        assert not root.is_leaf


class TestResolveRealm:
    def test_exact_sharding_key(self, trie):
        assert trie.resolve_realm("/a/x") == "zk-1"
        assert trie.resolve_realm("/b") == "zk-3"
        assert trie.resolve_realm("/c/d/e") == "zk-1"

    def test_keys_below_leaf_route_to_leaf(self):
        trie = RoutingTrie.from_mapping({"/a": "zk-1"})
        assert trie.resolve_realm("/a/b/c") == "zk-1"
        assert trie.resolve_realm("a/b/c/") == "zk-1"

    def test_internal_node_has_no_realm(self, trie):
        with pytest.raises(NoRealmFoundError):
            trie.resolve_realm("/a")
        with pytest.raises(NoRealmFoundError):
            trie.resolve_realm("/c/d")

    def test_unmapped_paths(self, trie):
        for path in ("/", "", "/z", "/a/z", "/c/q/e"):
            with pytest.raises(NoRealmFoundError):
                trie.resolve_realm(path)

    def test_empty_trie_resolves_nothing(self):
        with pytest.raises(NoRealmFoundError) as exc_info:
            RoutingTrie.empty().resolve_realm("/anything")
        assert exc_info.value.path == "/anything"

    def test_root_leaf_owns_everything(self):
        trie = RoutingTrie.from_mapping({"/": "zk-1"})
        assert trie.resolve_realm("/") == "zk-1"
        assert trie.resolve_realm("/any/path") == "zk-1"

    def test_lookup_errors_are_lookup_errors(self, trie):
        with pytest.raises(LookupError):
            trie.resolve_realm("/z")
        with pytest.raises(LookupError):
            trie.find_node("/z")

    def test_get_metadata_store_realm_alias(self, trie):
        assert trie.get_metadata_store_realm("/a/y/q") == "zk-2"


class TestGetAllMappingsUnderPath:
    def test_subtree(self):
        trie = RoutingTrie.from_mapping({"/a/x": "R1", "/a/y": "R2", "/b": "R3"})
        assert trie.get_all_mappings_under_path("/a") == {"/a/x": "R1", "/a/y": "R2"}

    def test_root_returns_everything(self):
        mapping = {"/a/x": "R1", "/a/y": "R2", "/b": "R3"}
        trie = RoutingTrie.from_mapping(mapping)
        assert trie.get_all_mappings_under_path("/") == mapping
        assert trie.get_all_mappings_under_path("") == mapping

    def test_trailing_separator_is_ignored(self, trie):
        assert trie.get_all_mappings_under_path(
            "/a/"
        ) == trie.get_all_mappings_under_path("/a")

    def test_leaf_path_returns_itself(self, trie):
        assert trie.get_all_mappings_under_path("/b") == {"/b": "zk-3"}

    def test_unknown_path_returns_empty(self, trie):
        assert trie.get_all_mappings_under_path("/z") == {}
        assert trie.get_all_mappings_under_path("/b/below/leaf") == {}

    def test_empty_trie(self):
        assert RoutingTrie.empty().get_all_mappings_under_path("/") == {}

    def test_root_leaf_is_keyed_by_start_path(self):
        trie = RoutingTrie.from_mapping({"/": "zk-1"})
        assert trie.get_all_mappings_under_path("/") == {"": "zk-1"}
        assert trie.get_all_mappings_under_path("") == {"": "zk-1"}

    def test_keys_extend_the_start_path(self):
        trie = RoutingTrie.from_mapping({"/a/x": "R1", "/a/y/z": "R2"})
        assert trie.get_all_mappings_under_path("a") == {"a/x": "R1", "a/y/z": "R2"}
        assert trie.get_all_mappings_under_path("a/") == {"a/x": "R1", "a/y/z": "R2"}
        assert trie.get_all_mappings_under_path("/a/y") == {"/a/y/z": "R2"}

    def test_export_subtree_alias(self, trie):
        assert trie.export_subtree("/c") == {"/c/d/e": "zk-1"}


class TestEmptySegments:
    """Consecutive separators address a node named by the empty segment."""

    def test_empty_interior_segment_is_routable(self):
        trie = RoutingTrie.from_mapping({"/a//b": "R1"})
        assert trie.resolve_realm("/a//b") == "R1"
        assert trie.resolve_realm("/a//b/c") == "R1"
        assert trie.get_all_mappings_under_path("/") == {"/a//b": "R1"}

    def test_empty_segment_node_hangs_below_parent(self):
        trie = RoutingTrie.from_mapping({"/a//b": "R1"})
        parent = trie.find_node("/a/")
        assert parent.children.keys() == {""}
        assert trie.find_node("/a//").children.keys() == {"b"}
        with pytest.raises(NoRealmFoundError):
            trie.resolve_realm("/a/b")


class TestOverlapQueries:
    def test_contains_key_realm_pair(self, trie):
        assert trie.contains_key_realm_pair("/a/x", "zk-1")
        assert not trie.contains_key_realm_pair("/a/x", "zk-2")
        assert not trie.contains_key_realm_pair("/a", "zk-1")
        assert not trie.contains_key_realm_pair("/a/x/below", "zk-1")

    def test_is_sharding_key_insertion_valid(self, trie):
        assert trie.is_sharding_key_insertion_valid("/a/z")
        assert trie.is_sharding_key_insertion_valid("/new/key")
        assert not trie.is_sharding_key_insertion_valid("/a")
        assert not trie.is_sharding_key_insertion_valid("/a/x")
        assert not trie.is_sharding_key_insertion_valid("/a/x/below")
        assert not trie.is_sharding_key_insertion_valid("/")

    def test_insertion_validity_on_empty_and_root_tries(self):
        assert RoutingTrie.empty().is_sharding_key_insertion_valid("/")
        assert RoutingTrie.empty().is_sharding_key_insertion_valid("/a")
        root_owned = RoutingTrie.from_mapping({"/": "zk-1"})
        assert not root_owned.is_sharding_key_insertion_valid("/a")


def test_statistics(trie) -> None:
    assert trie.get_statistics() == RoutingTrieStatistics(
        total_nodes=8,
        leaf_count=4,
        realm_count=3,
        max_leaf_depth=3,
    )
    assert RoutingTrie.empty().get_statistics() == RoutingTrieStatistics(
        total_nodes=1, leaf_count=0, realm_count=0, max_leaf_depth=0
    )


def test_from_mapping_rejects_overlap() -> None:
    with pytest.raises(ConflictError):
        RoutingTrie.from_mapping({"/a/b": "zk-1", "/a/b/c": "zk-2"})
    with pytest.raises(ConflictError):
        RoutingTrie.from_mapping({"/a/b/c": "zk-2", "/a/b": "zk-1"})


class TestRoutingTrieProperties:
    """Property-based tests using Hypothesis."""

    @given(routing_data(), st.lists(segments, max_size=3))
    def test_every_key_and_its_descendants_resolve(self, mapping, suffix):
        """Property: ownership extends from a sharding key to all keys below it."""
        trie = RoutingTrie.from_mapping(mapping)
        for path, realm in mapping.items():
            assert trie.resolve_realm(path) == realm
            assert trie.resolve_realm("/".join([path, *suffix])) == realm

    @given(routing_data())
    def test_root_export_round_trips(self, mapping):
        """Property: exporting the root yields exactly the inserted mapping."""
        trie = RoutingTrie.from_mapping(mapping)
        assert trie.get_all_mappings_under_path("/") == mapping
        assert trie.get_statistics().leaf_count == len(mapping)

    @given(routing_data(), segments)
    def test_subtree_export_is_prefix_filter(self, mapping, first_segment):
        """Property: exporting /seg returns exactly the keys under /seg."""
        trie = RoutingTrie.from_mapping(mapping)
        prefix = f"/{first_segment}"
        expected = {
            path: realm
            for path, realm in mapping.items()
            if path == prefix or path.startswith(prefix + "/")
        }
        assert trie.get_all_mappings_under_path(prefix) == expected

    @given(routing_data(), st.randoms(use_true_random=False))
    def test_insertion_order_is_irrelevant(self, mapping, rng):
        """Property: building is commutative over non-conflicting inserts."""
        items = list(mapping.items())
        rng.shuffle(items)
        assert RoutingTrie.from_mapping(dict(items)) == RoutingTrie.from_mapping(
            mapping
        )

    @settings(max_examples=50)
    @given(segment_paths, segment_paths)
    def test_nested_mappings_always_conflict(self, outer, extra):
        """Property: a mapping nested in another conflicts in either order."""
        inner = outer + extra
        for first, second in ((outer, inner), (inner, outer)):
            builder = RoutingTreeBuilder()
            builder.insert(join_path(first), "zk-1")
            with pytest.raises(ConflictError):
                builder.insert(join_path(second), "zk-2")


class RoutingTrieStateMachine(RuleBasedStateMachine):
    """Stateful test comparing the builder against a plain dictionary model."""

    def __init__(self):
        super().__init__()
        self.builder = RoutingTreeBuilder()
        self.expected: dict[tuple[str, ...], str] = {}

    @rule(path=segment_paths, realm=realm_addresses)
    def insert(self, path, realm):
        conflicts = any(
            _overlaps(path, existing) and (existing != path or owner != realm)
            for existing, owner in self.expected.items()
        )
        if conflicts:
            with pytest.raises(ConflictError):
                self.builder.insert(join_path(path), realm)
        else:
            self.builder.insert(join_path(path), realm)
            self.expected[path] = realm

    @invariant()
    def trie_matches_model(self):
        trie = self.builder.build()
        expected = {join_path(path): realm for path, realm in self.expected.items()}
        assert trie.get_all_mappings_under_path("/") == expected
        assert len(self.builder) == len(expected)


TestRoutingTrieStateMachine = RoutingTrieStateMachine.TestCase
