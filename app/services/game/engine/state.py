"""Mutation helpers for GameState.

Every helper takes a state and returns a new one; inputs are never modified.
Containers are rebuilt rather than shared, because model_copy() is shallow.
Unknown regions, slots or armadas raise InvalidReference instead of being
silently ignored.
"""

import logging

from app.schemas.game_engine import Armada, GameState, Player, Soldier, Temple

logger = logging.getLogger(__name__)


class InvalidReference(ValueError):
    """A region, player slot or armada id does not exist in the state."""


def require_region(state: GameState, region: int) -> None:
    if region < 0 or region >= len(state.regions):
        raise InvalidReference(f"Unknown region: {region}")


def player_by_slot(state: GameState, slot: int) -> Player:
    for player in state.players:
        if player.slot_index == slot:
            return player
    raise InvalidReference(f"Unknown player slot: {slot}")


def owner_of(state: GameState, region: int) -> int | None:
    require_region(state, region)
    return state.owners_by_region.get(region)


def regions_owned_by(state: GameState, slot: int) -> list[int]:
    return sorted(r for r, owner in state.owners_by_region.items() if owner == slot)


def set_owner(state: GameState, region: int, slot: int | None) -> GameState:
    """Assign a region to a player, or make it neutral with slot=None."""
    require_region(state, region)
    owners = dict(state.owners_by_region)
    if slot is None:
        owners.pop(region, None)
    else:
        player_by_slot(state, slot)
        owners[region] = slot
    return state.model_copy(update={"owners_by_region": owners})


def soldiers_at(state: GameState, region: int) -> list[Soldier]:
    require_region(state, region)
    return list(state.garrisons_by_region.get(region, []))


def add_soldiers(state: GameState, region: int, count: int) -> GameState:
    """Create new soldiers at a region, allocating fresh ids."""
    require_region(state, region)
    next_id = state.next_soldier_id
    new_soldiers = [Soldier(id=next_id + i) for i in range(count)]
    return place_soldiers(state, region, new_soldiers).model_copy(
        update={"next_soldier_id": next_id + count}
    )


def place_soldiers(state: GameState, region: int, soldiers: list[Soldier]) -> GameState:
    require_region(state, region)
    garrisons = dict(state.garrisons_by_region)
    garrisons[region] = garrisons.get(region, []) + list(soldiers)
    return state.model_copy(update={"garrisons_by_region": garrisons})


def take_soldiers(
    state: GameState, region: int, count: int
) -> tuple[GameState, list[Soldier]]:
    """Remove `count` soldiers from a region and return them.

    Soldiers are taken from the end of the garrison list.
    """
    garrison = soldiers_at(state, region)
    if count < 0 or count > len(garrison):
        raise ValueError(
            f"Cannot take {count} soldiers from region {region} holding {len(garrison)}"
        )
    split = len(garrison) - count
    remaining, taken = garrison[:split], garrison[split:]
    garrisons = dict(state.garrisons_by_region)
    if remaining:
        garrisons[region] = remaining
    else:
        garrisons.pop(region, None)
    return state.model_copy(update={"garrisons_by_region": garrisons}), taken


def set_temple(state: GameState, temple: Temple) -> GameState:
    require_region(state, temple.region_index)
    temples = dict(state.temples_by_region)
    temples[temple.region_index] = temple
    return state.model_copy(update={"temples_by_region": temples})


def ships_at(state: GameState, planet: int) -> int:
    require_region(state, planet)
    return state.ships_by_planet.get(planet, 0)


def set_ships(state: GameState, planet: int, ships: int) -> GameState:
    require_region(state, planet)
    if ships < 0:
        raise ValueError(f"Ship count cannot be negative: {ships}")
    ships_by_planet = dict(state.ships_by_planet)
    if ships:
        ships_by_planet[planet] = ships
    else:
        ships_by_planet.pop(planet, None)
    return state.model_copy(update={"ships_by_planet": ships_by_planet})


def add_armada(state: GameState, armada: Armada) -> GameState:
    require_region(state, armada.source)
    require_region(state, armada.destination)
    return state.model_copy(update={"armadas": [*state.armadas, armada]})


def remove_armada(state: GameState, armada_id: str) -> GameState:
    remaining = [a for a in state.armadas if a.id != armada_id]
    if len(remaining) == len(state.armadas):
        raise InvalidReference(f"Unknown armada: {armada_id}")
    return state.model_copy(update={"armadas": remaining})


def remove_armadas_of(state: GameState, slot: int) -> tuple[GameState, list[Armada]]:
    """Drop every in-transit armada owned by a player."""
    player_by_slot(state, slot)
    removed = [a for a in state.armadas if a.owner_slot == slot]
    if not removed:
        return state, []
    remaining = [a for a in state.armadas if a.owner_slot != slot]
    logger.debug("Removed %d armadas of slot %d", len(removed), slot)
    return state.model_copy(update={"armadas": remaining}), removed


def resource_of(state: GameState, slot: int) -> int:
    player_by_slot(state, slot)
    return state.resource_by_player.get(slot, 0)


def adjust_resource(state: GameState, slot: int, delta: int) -> GameState:
    current = resource_of(state, slot)
    if current + delta < 0:
        raise ValueError(f"Resource for slot {slot} cannot go below zero")
    resources = dict(state.resource_by_player)
    resources[slot] = current + delta
    return state.model_copy(update={"resource_by_player": resources})
