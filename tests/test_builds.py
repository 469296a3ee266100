"""Tests for unit purchases, temple upgrades and their bonuses."""

import pytest

from app.schemas.game_engine import GameState, UpgradeKind
from app.services.game.engine import (
    BuildAction,
    ErrorCode,
    MoveAction,
    TempleUpgraded,
    UnitsRecruited,
    get_rules,
    process_action,
)
from app.services.game.engine.constants import BASE_MOVES_PER_TURN
from app.services.game.engine.state import ships_at, soldiers_at

from .conftest import create_armada_state, create_conquest_state


class TestRecruitSoldiers:
    """Test buying soldiers at a temple."""

    def test_cost_rises_with_each_purchase(self):
        state = create_conquest_state(resources={0: 20, 1: 0})
        result = process_action(state, BuildAction(region=0, upgrade=UpgradeKind.SOLDIER, count=2), 0)

        assert result.success
        state = result.state
        assert state.resource_by_player[0] == 3
        assert len(soldiers_at(state, 0)) == 7
        assert state.num_bought_soldiers == 2
        event = result.events[0]
        assert isinstance(event, UnitsRecruited)
        assert event.cost == 17

    def test_insufficient_resource(self):
        state = create_conquest_state(resources={0: 20, 1: 0})
        state = process_action(
            state, BuildAction(region=0, upgrade=UpgradeKind.SOLDIER, count=2), 0
        ).state

        result = process_action(state, BuildAction(region=0, upgrade=UpgradeKind.SOLDIER), 0)
        assert result.error_code == ErrorCode.INSUFFICIENT_RESOURCE

    def test_new_soldiers_get_fresh_ids(self):
        state = create_conquest_state(resources={0: 8, 1: 0})
        existing = {s.id for s in soldiers_at(state, 0)} | {s.id for s in soldiers_at(state, 3)}

        state = process_action(state, BuildAction(region=0, upgrade=UpgradeKind.SOLDIER), 0).state
        new_ids = {s.id for s in soldiers_at(state, 0)} - existing
        assert len(new_ids) == 1

    def test_building_uses_no_moves(self):
        state = create_conquest_state(resources={0: 8, 1: 0})
        state = process_action(state, BuildAction(region=0, upgrade=UpgradeKind.SOLDIER), 0).state
        assert state.moves_remaining == BASE_MOVES_PER_TURN


class TestTempleUpgrades:
    """Test the temple upgrade track."""

    def test_first_level(self):
        state = create_conquest_state(resources={0: 15, 1: 0})
        result = process_action(state, BuildAction(region=0, upgrade=UpgradeKind.WATER), 0)

        assert result.success
        temple = result.state.temples_by_region[0]
        assert temple.upgrade == UpgradeKind.WATER
        assert temple.level == 0
        assert result.state.resource_by_player[0] == 0
        assert isinstance(result.events[0], TempleUpgraded)
        assert result.events[0].cost == 15

    def test_same_kind_raises_level(self):
        state = create_conquest_state(
            temples={0: (UpgradeKind.WATER, 0)}, resources={0: 25, 1: 0}
        )
        result = process_action(state, BuildAction(region=0, upgrade=UpgradeKind.WATER), 0)

        assert result.state.temples_by_region[0].level == 1
        assert result.state.resource_by_player[0] == 0

    def test_max_level(self):
        state = create_conquest_state(
            temples={0: (UpgradeKind.WATER, 1)}, resources={0: 100, 1: 0}
        )
        result = process_action(state, BuildAction(region=0, upgrade=UpgradeKind.WATER), 0)
        assert result.error_code == ErrorCode.MAX_LEVEL_REACHED

    def test_other_kind_replaces_upgrade(self):
        state = create_conquest_state(
            temples={0: (UpgradeKind.WATER, 1)}, resources={0: 20, 1: 0}
        )
        result = process_action(state, BuildAction(region=0, upgrade=UpgradeKind.FIRE), 0)

        temple = result.state.temples_by_region[0]
        assert temple.upgrade == UpgradeKind.FIRE
        assert temple.level == 0

    def test_rebuild_clears_for_free(self):
        state = create_conquest_state(temples={0: (UpgradeKind.FIRE, 0)}, resources={0: 5, 1: 0})
        result = process_action(state, BuildAction(region=0, upgrade=UpgradeKind.REBUILD), 0)

        assert result.state.temples_by_region[0].upgrade == UpgradeKind.NONE
        assert result.state.resource_by_player[0] == 5

    def test_air_applies_this_turn(self):
        state = create_conquest_state(resources={0: 25, 1: 0})
        result = process_action(state, BuildAction(region=0, upgrade=UpgradeKind.AIR), 0)
        assert result.state.moves_remaining == BASE_MOVES_PER_TURN + 1

    @pytest.mark.parametrize(
        "action, expected",
        [
            (BuildAction(region=0, upgrade=UpgradeKind.REBUILD), ErrorCode.INVALID_UPGRADE),
            (BuildAction(region=0, upgrade=UpgradeKind.NONE), ErrorCode.INVALID_UPGRADE),
            (BuildAction(region=0, upgrade=UpgradeKind.WATER, count=2), ErrorCode.INVALID_COUNT),
            (BuildAction(region=0, upgrade=UpgradeKind.SOLDIER, count=0), ErrorCode.INVALID_COUNT),
            (BuildAction(region=3, upgrade=UpgradeKind.WATER), ErrorCode.NOT_OWNED),
            (BuildAction(region=1, upgrade=UpgradeKind.WATER), ErrorCode.NO_TEMPLE),
            (BuildAction(region=8, upgrade=UpgradeKind.WATER), ErrorCode.INVALID_REFERENCE),
        ],
    )
    def test_rejected_builds(self, action: BuildAction, expected):
        state = create_conquest_state(
            owners={0: 0, 1: 0, 3: 1}, garrisons={0: 5, 1: 1, 3: 5}, resources={0: 100, 1: 0}
        )
        result = process_action(state, action, 0)
        assert result.error_code == expected

    def test_build_does_not_modify_input(self):
        state = create_conquest_state(resources={0: 100, 1: 0})
        before = state.model_dump()
        process_action(state, BuildAction(region=0, upgrade=UpgradeKind.EARTH), 0)
        assert state.model_dump() == before


class TestUpgradeEffects:
    """Test how upgrades change income and combat."""

    def test_water_raises_income(self):
        state = create_conquest_state(temples={0: (UpgradeKind.WATER, 0)})
        assert get_rules(state).income(state, 0) == 7

    def test_water_temples_add_up(self):
        state = create_conquest_state(
            owners={0: 0, 1: 0, 3: 1},
            garrisons={0: 5, 1: 5, 3: 5},
            temples={0: (UpgradeKind.WATER, 0), 1: (UpgradeKind.WATER, 1), 3: (UpgradeKind.NONE, 0)},
        )
        # (2 regions + 10 temple soldiers) * (100 + 20 + 40)%
        assert get_rules(state).income(state, 0) == 19

    def test_weaker_air_temple_adds_no_moves(self):
        """Moves follow the strongest AIR temple, so a weaker second one changes nothing."""
        state = create_conquest_state(
            owners={0: 0, 1: 0, 3: 1},
            garrisons={0: 5, 1: 5, 3: 5},
            temples={0: (UpgradeKind.AIR, 1), 1: (UpgradeKind.NONE, 0), 3: (UpgradeKind.NONE, 0)},
            resources={0: 100, 1: 0},
        )
        result = process_action(state, BuildAction(region=1, upgrade=UpgradeKind.AIR), 0)

        assert result.success
        assert result.state.moves_remaining == BASE_MOVES_PER_TURN

    def test_fire_and_earth_bonuses(self):
        state = create_conquest_state(
            temples={0: (UpgradeKind.FIRE, 0), 3: (UpgradeKind.EARTH, 1)}
        )
        rules = get_rules(state)
        assert rules.attack_bonus(state, 0) == 1
        assert rules.defense_bonus(state, 1) == 2
        assert rules.attack_bonus(state, 1) == 0

    def test_neutral_defenders_get_no_bonus(self):
        state = create_conquest_state(temples={0: (UpgradeKind.EARTH, 1)})
        assert get_rules(state).defense_bonus(state, None) == 0

    def test_capture_resets_temple(self):
        state = create_conquest_state(
            owners={0: 0, 1: 1, 3: 1},
            garrisons={0: 5, 3: 5},
            temples={0: (UpgradeKind.NONE, 0), 1: (UpgradeKind.WATER, 1), 3: (UpgradeKind.NONE, 0)},
        )
        result = process_action(state, MoveAction(source=0, destination=1, count=2), 0)

        assert result.state.owners_by_region[1] == 0
        temple = result.state.temples_by_region[1]
        assert temple.upgrade == UpgradeKind.NONE
        assert temple.level == 0


class TestBuildShips:
    """Test the armada variant's only purchase."""

    def test_buy_ships(self):
        state = create_armada_state(resources={0: 20, 1: 0})
        result = process_action(state, BuildAction(region=0, upgrade=UpgradeKind.SOLDIER, count=2), 0)

        assert result.success
        assert ships_at(result.state, 0) == 12
        assert result.state.resource_by_player[0] == 0

    def test_no_temple_upgrades(self, two_player_armada: GameState):
        state = two_player_armada.model_copy(update={"resource_by_player": {0: 100, 1: 0}})
        result = process_action(state, BuildAction(region=0, upgrade=UpgradeKind.WATER), 0)
        assert result.error_code == ErrorCode.INVALID_UPGRADE

    def test_income_is_production(self, two_player_armada: GameState):
        assert get_rules(two_player_armada).income(two_player_armada, 0) == 1
