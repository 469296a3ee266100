"""Temple upgrades and unit purchases.

Temples carry at most one upgrade kind. Buying the kind a temple already has
raises its level; buying a different kind replaces it at level 0. REBUILD
clears the temple for free. A player's FIRE, EARTH and AIR bonus is the
strongest level among the temples they own carrying that kind; WATER adds up
across all of them.
"""

import logging

from app.schemas.game_engine import GameState, GameVariant, Temple, UpgradeKind

from .actions import BuildAction
from .constants import SHIP_COST, TEMPLE_UPGRADES, soldier_cost
from .events import AnyGameEvent, TempleUpgraded, UnitsRecruited
from .state import add_soldiers, adjust_resource, set_ships, set_temple, ships_at

logger = logging.getLogger(__name__)


def _owned_effects(state: GameState, slot: int | None, kind: UpgradeKind) -> list[int]:
    if slot is None or kind not in TEMPLE_UPGRADES:
        return []
    levels = TEMPLE_UPGRADES[kind].levels
    return [
        levels[min(temple.level, len(levels) - 1)]
        for region, temple in state.temples_by_region.items()
        if state.owners_by_region.get(region) == slot and temple.upgrade == kind
    ]


def temple_bonus(state: GameState, slot: int | None, kind: UpgradeKind) -> int:
    """Strongest effect of `kind` across the temples a player owns."""
    return max(_owned_effects(state, slot, kind), default=0)


def water_bonus(state: GameState, slot: int) -> int:
    """Income bonus percent, summed over every WATER temple the player owns."""
    return sum(_owned_effects(state, slot, UpgradeKind.WATER))


def air_bonus(state: GameState, slot: int) -> int:
    return temple_bonus(state, slot, UpgradeKind.AIR)


def target_level(temple: Temple, kind: UpgradeKind) -> int:
    return temple.level + 1 if temple.upgrade == kind else 0


def is_max_level(temple: Temple, kind: UpgradeKind) -> bool:
    definition = TEMPLE_UPGRADES[kind]
    return temple.upgrade == kind and temple.level + 1 >= len(definition.costs)


def build_cost(state: GameState, action: BuildAction) -> int:
    """Resource cost of a build action. Assumes the action was validated."""
    if action.upgrade == UpgradeKind.SOLDIER:
        if state.variant == GameVariant.ARMADA:
            return SHIP_COST * action.count
        return sum(soldier_cost(state.num_bought_soldiers + i) for i in range(action.count))
    if action.upgrade == UpgradeKind.REBUILD:
        return 0
    temple = state.temples_by_region[action.region]
    return TEMPLE_UPGRADES[action.upgrade].costs[target_level(temple, action.upgrade)]


def apply_build(
    state: GameState, slot: int, action: BuildAction
) -> tuple[GameState, list[AnyGameEvent]]:
    cost = build_cost(state, action)
    state = adjust_resource(state, slot, -cost)

    if action.upgrade == UpgradeKind.SOLDIER:
        if state.variant == GameVariant.ARMADA:
            state = set_ships(state, action.region, ships_at(state, action.region) + action.count)
        else:
            state = add_soldiers(state, action.region, action.count)
            state = state.model_copy(
                update={"num_bought_soldiers": state.num_bought_soldiers + action.count}
            )
        logger.info(
            "Units recruited: slot=%d, region=%d, count=%d, cost=%d",
            slot,
            action.region,
            action.count,
            cost,
        )
        return state, [
            UnitsRecruited(player_slot=slot, region=action.region, count=action.count, cost=cost)
        ]

    temple = state.temples_by_region[action.region]
    air_before = air_bonus(state, slot)
    if action.upgrade == UpgradeKind.REBUILD:
        upgraded = Temple(region_index=action.region)
    else:
        upgraded = Temple(
            region_index=action.region,
            upgrade=action.upgrade,
            level=target_level(temple, action.upgrade),
        )
    state = set_temple(state, upgraded)

    # AIR takes effect on the current turn
    air_delta = air_bonus(state, slot) - air_before
    if air_delta:
        state = state.model_copy(
            update={"moves_remaining": max(0, state.moves_remaining + air_delta)}
        )

    logger.info(
        "Temple upgraded: slot=%d, region=%d, upgrade=%s, level=%d, cost=%d",
        slot,
        action.region,
        upgraded.upgrade.value,
        upgraded.level,
        cost,
    )
    return state, [
        TempleUpgraded(
            player_slot=slot,
            region=action.region,
            upgrade=upgraded.upgrade,
            level=upgraded.level,
            cost=cost,
        )
    ]
