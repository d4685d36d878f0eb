import itertools
import logging

import pytest

from kinship_atlas.exceptions import DataQualityError, LayoutConfigError, UnknownStrategyError
from kinship_atlas.generations import GenerationCache
from kinship_atlas.layout import STRATEGIES, LayoutConfig, compute_layout, resolve_overlaps
from kinship_atlas.models import Position


def rows_of(positions):
    rows = {}
    for person_id, pos in positions.items():
        rows.setdefault(pos.y, []).append(pos.x)
    return rows


def assert_no_overlap(positions, min_gap):
    for xs in rows_of(positions).values():
        xs = sorted(xs)
        for left, right in zip(xs, xs[1:]):
            assert right - left >= min_gap - 1e-9


class TestLayoutConfig:
    def test_defaults(self):
        config = LayoutConfig()

        assert config.row_height == 200
        assert config.min_gap == 210
        assert config.spouse_step < config.sibling_step
        assert config.validate() is config

    def test_from_mapping_accepts_camel_case(self):
        config = LayoutConfig.from_mapping({"nodeWidth": 200, "familyUnitGap": 100, "branch_gap": 10})

        assert config.node_width == 200
        assert config.family_unit_gap == 100
        assert config.branch_gap == 10

    def test_unknown_option(self):
        with pytest.raises(LayoutConfigError):
            LayoutConfig.from_mapping({"nodeDepth": 3})

    @pytest.mark.parametrize(
        "options",
        [
            {"node_width": 0},
            {"node_height": -10},
            {"generation_gap": "wide"},
            {"spouse_gap": 60, "sibling_gap": 60},
            {"min_spacing": 100},
            {"years_per_generation": 0},
        ],
    )
    def test_invalid_options(self, options):
        with pytest.raises(LayoutConfigError):
            LayoutConfig(**options).validate()

    def test_config_errors_are_value_errors(self, nuclear_family):
        with pytest.raises(ValueError):
            compute_layout(nuclear_family, "dad", config={"spouseGap": 80, "siblingGap": 60})


class TestComputeLayout:
    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_root_without_relations_sits_at_origin(self, builder, strategy):
        people = builder.add("solo").add("a").add("b").marry("a", "b").build()

        assert compute_layout(people, "solo", strategy=strategy) == {"solo": Position(0.0, 0.0)}

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_empty_input_and_unknown_root(self, nuclear_family, strategy):
        assert compute_layout([], "dad", strategy=strategy) == {}
        assert compute_layout(nuclear_family, "nobody", strategy=strategy) == {}

    def test_unknown_strategy_and_orientation(self, nuclear_family):
        with pytest.raises(UnknownStrategyError):
            compute_layout(nuclear_family, "dad", strategy="radial")
        with pytest.raises(UnknownStrategyError):
            compute_layout(nuclear_family, "dad", orientation="sideways")

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_everyone_placed_once(self, extended_family, strategy):
        positions = compute_layout(extended_family, "cat", strategy=strategy)

        assert set(positions) == {person.id for person in extended_family}

    @pytest.mark.parametrize(
        "strategy, orientation",
        list(itertools.product(STRATEGIES, ("top-down", "bottom-up"))),
    )
    def test_no_overlap(self, extended_family, strategy, orientation):
        config = LayoutConfig()
        positions = compute_layout(extended_family, "eve", strategy=strategy, orientation=orientation)

        assert_no_overlap(positions, config.min_gap)
        assert_no_overlap(positions, config.node_width)

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_deterministic(self, extended_family, strategy):
        first = compute_layout(extended_family, "cat", strategy=strategy)
        second = compute_layout(extended_family, "cat", strategy=strategy)

        assert first == second
        assert list(first) == list(second)

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_spouses_closer_than_siblings(self, nuclear_family, strategy):
        positions = compute_layout(nuclear_family, "dad", strategy=strategy)

        spouse_gap = abs(positions["dad"].x - positions["mom"].x)
        sibling_gap = abs(positions["kid1"].x - positions["kid2"].x)
        assert spouse_gap < sibling_gap
        assert positions["dad"].y == positions["mom"].y
        assert positions["kid1"].y == positions["kid2"].y

    def test_config_mapping_is_applied(self, nuclear_family):
        positions = compute_layout(
            nuclear_family,
            "dad",
            config={"nodeWidth": 100, "spouseGap": 10, "siblingGap": 20},
            strategy="hierarchical",
        )

        assert positions["mom"].x - positions["dad"].x == 110

    def test_only_reachable_people_by_default(self, nuclear_family):
        from kinship_atlas.models import Person

        people = nuclear_family + [Person(id="stranger", first_name="Stan", last_name="Ger")]

        assert "stranger" not in compute_layout(people, "dad")
        assert "stranger" in compute_layout(people, "dad", reachable_only=False)

    def test_too_many_people_falls_back_to_hierarchical(self, extended_family, caplog):
        with caplog.at_level(logging.WARNING):
            positions = compute_layout(extended_family, "cat", strategy="beautify", max_people=3)

        assert positions == compute_layout(extended_family, "cat", strategy="hierarchical")
        assert "hierarchical" in caplog.text

    def test_seeded_positions(self, nuclear_family):
        seed = {"dad": {"x": 5, "y": 7}, "kid1": Position(3, 4), "ghost": (1, 2)}

        seeded = compute_layout(nuclear_family, "dad", seed=seed, use_seed=True)
        fresh = compute_layout(nuclear_family, "dad", seed=seed)

        assert seeded["dad"] == Position(5.0, 7.0)
        assert seeded["kid1"] == Position(3, 4)
        assert "ghost" not in seeded
        assert seeded["mom"] == fresh["mom"]
        assert fresh["dad"] != Position(5.0, 7.0)

    def test_strict_mode(self, builder):
        people = builder.add("a").add("b").add("c").parent("b", "a").parent("c", "b").siblings("a", "c").build()

        assert compute_layout(people, "a")
        with pytest.raises(DataQualityError):
            compute_layout(people, "a", strict=True)


class TestHierarchical:
    def test_rows_centered(self, nuclear_family):
        positions = compute_layout(nuclear_family, "dad", strategy="hierarchical")

        assert positions == {
            "dad": Position(-110.0, 0.0),
            "mom": Position(110.0, 0.0),
            "kid1": Position(-120.0, 200.0),
            "kid2": Position(120.0, 200.0),
        }

    def test_spouse_siblings_on_outer_sides(self, builder):
        people = (
            builder.add("ann")
            .add("ben")
            .add("carl")
            .add("cara")
            .siblings("ann", "ben")
            .siblings("carl", "cara")
            .marry("ann", "carl")
            .build()
        )

        positions = compute_layout(people, "ann", strategy="hierarchical")

        xs = {pid: pos.x for pid, pos in positions.items()}
        assert xs["ben"] < xs["ann"] < xs["carl"] < xs["cara"]
        assert xs["carl"] - xs["ann"] < xs["ann"] - xs["ben"]

    def test_bottom_up(self, nuclear_family):
        positions = compute_layout(nuclear_family, "dad", strategy="hierarchical", orientation="bottom-up")

        assert positions["dad"].y == 200
        assert positions["kid1"].y == 0


class TestGenealogy:
    def test_top_down_centered_on_root(self, nuclear_family):
        positions = compute_layout(nuclear_family, "dad", strategy="genealogy")

        assert positions["dad"] == Position(0.0, 0.0)
        assert positions["mom"] == Position(220.0, 0.0)
        # Children centered under their parents
        assert positions["kid1"].x + positions["kid2"].x == pytest.approx(positions["dad"].x + positions["mom"].x)
        assert positions["kid1"].y == 200

    def test_bottom_up(self, nuclear_family):
        positions = compute_layout(nuclear_family, "dad", strategy="genealogy", orientation="bottom-up")

        assert positions["dad"] == Position(0.0, 0.0)
        assert positions["kid1"].y == -200

    @pytest.mark.parametrize("orientation, direction", [("top-down", -1), ("bottom-up", 1)])
    def test_root_with_ancestors_sits_at_origin(self, builder, orientation, direction):
        people = builder.add("gp").add("dad").add("kid").parent("dad", "gp").parent("kid", "dad").build()

        positions = compute_layout(people, "kid", strategy="genealogy", orientation=orientation)

        assert positions == {
            "kid": Position(0.0, 0.0),
            "dad": Position(0.0, direction * 200.0),
            "gp": Position(0.0, direction * 400.0),
        }

    def test_deep_chain_keeps_children_below_parents(self, deep_chain):
        positions = compute_layout(deep_chain, "p0", strategy="genealogy")

        assert [positions[f"p{i}"].y for i in range(14)] == [i * 200.0 for i in range(14)]

    def test_children_in_birth_order(self, nuclear_family):
        nuclear_family[2].birth_date = "1980-01-01"

        positions = compute_layout(nuclear_family, "dad", strategy="genealogy")

        assert positions["kid2"].x < positions["kid1"].x


class TestBeautify:
    def test_nuclear_family(self, nuclear_family):
        positions = compute_layout(nuclear_family, "kid1")

        assert positions == {
            "dad": Position(-110.0, 0.0),
            "mom": Position(110.0, 0.0),
            "kid1": Position(-120.0, 200.0),
            "kid2": Position(120.0, 200.0),
        }

    def test_extended_family(self, extended_family):
        positions = compute_layout(extended_family, "eve")

        assert {pid: pos.x for pid, pos in positions.items()} == {
            "gp": 0.0,
            "gm": 220.0,
            "carl": -230.0,
            "ann": -10.0,
            "ben": 230.0,
            "cat": -130.0,
            "dan": 130.0,
            "eve": -130.0,
        }
        assert {pid: pos.y for pid, pos in positions.items()} == {
            "gp": 0.0,
            "gm": 0.0,
            "carl": 200.0,
            "ann": 200.0,
            "ben": 200.0,
            "cat": 400.0,
            "dan": 400.0,
            "eve": 600.0,
        }

    def test_parents_centered_over_children(self, extended_family):
        positions = compute_layout(extended_family, "eve")
        x = {pid: pos.x for pid, pos in positions.items()}

        assert (x["gp"] + x["gm"]) / 2 == pytest.approx((x["ann"] + x["ben"]) / 2)
        # ann's sibling cluster, with carl on its outer edge, above cat and dan
        cluster = [x["carl"], x["ann"], x["ben"]]
        assert (min(cluster) + max(cluster)) / 2 == pytest.approx((x["cat"] + x["dan"]) / 2)

    def test_married_in_spouse_stays_next_to_partner(self, extended_family):
        positions = compute_layout(extended_family, "eve")

        assert positions["carl"].x < positions["ann"].x < positions["ben"].x
        assert positions["ann"].x - positions["carl"].x < positions["ben"].x - positions["ann"].x

    def test_bounding_box_centered(self, extended_family):
        positions = compute_layout(extended_family, "eve")

        xs = [pos.x for pos in positions.values()]
        assert min(xs) + max(xs) == pytest.approx(0.0)

    def test_unconnected_branches_side_by_side(self, builder):
        people = (
            builder.add("a", birth="1900-01-01")
            .add("b")
            .add("k1")
            .add("c", birth="1901-01-01")
            .add("d")
            .add("k2")
            .marry("a", "b")
            .parent("k1", "a", "b")
            .marry("c", "d")
            .parent("k2", "c", "d")
            .build()
        )

        positions = compute_layout(people, "a", reachable_only=False)

        first = [positions[pid].x for pid in ("a", "b", "k1")]
        second = [positions[pid].x for pid in ("c", "d", "k2")]
        assert max(first) < min(second)

    def test_first_sibling_spouse_on_the_left(self, builder):
        people = (
            builder.add("p1", birth="1900-01-01")
            .add("s1", birth="1930-01-01")
            .add("s2", birth="1932-01-01")
            .add("w1", birth="1931-01-01")
            .add("w2", birth="1933-01-01")
            .parent("s1", "p1")
            .parent("s2", "p1")
            .marry("s1", "w1")
            .marry("s2", "w2")
            .build()
        )

        positions = compute_layout(people, "p1")

        xs = {pid: pos.x for pid, pos in positions.items()}
        assert xs["w1"] < xs["s1"] < xs["s2"] < xs["w2"]


def test_resolve_overlaps_pushes_right_neighbours():
    positions = {
        "a": Position(0, 0),
        "b": Position(10, 0),
        "c": Position(500, 0),
        "x": Position(5, 200),
    }
    generation_of = {"a": 0, "b": 0, "c": 0, "x": 1}

    resolved = resolve_overlaps(positions, generation_of, min_gap=100)

    assert resolved["a"] == Position(0, 0)
    assert resolved["b"] == Position(100, 0)
    assert resolved["c"] == Position(590, 0)
    assert resolved["x"] == Position(5, 200)
    assert positions["b"] == Position(10, 0)


def test_resolve_overlaps_ties_broken_by_id():
    positions = {"b": Position(0, 0), "a": Position(0, 0)}

    resolved = resolve_overlaps(positions, {"a": 0, "b": 0}, min_gap=50)

    assert resolved == {"a": Position(0, 0), "b": Position(50, 0)}


def test_resolved_neighbours_may_sit_closer_than_spouses():
    # Spouse pitch beats sibling pitch when groups are first placed; overlap
    # resolution only promises min_gap, which is below the spouse pitch.
    config = LayoutConfig()
    positions = {"a": Position(0, 0), "b": Position(10, 0)}

    resolved = resolve_overlaps(positions, {"a": 0, "b": 0}, config.min_gap)

    assert resolved["b"].x - resolved["a"].x == config.min_gap
    assert config.min_gap < config.spouse_step < config.sibling_step


def test_generation_cache_is_reused(extended_family):
    cache = GenerationCache()

    first = compute_layout(extended_family, "cat", strategy="hierarchical", generation_cache=cache)
    second = compute_layout(extended_family, "cat", strategy="hierarchical", generation_cache=cache)

    assert first == second == compute_layout(extended_family, "cat", strategy="hierarchical")
    assert (cache.misses, cache.hits) == (1, 1)
