"""Per-variant rules behind a single capability interface.

Both games share ownership, resources and turn flow. They differ in how
forces are stored and moved:
- Conquest keeps a soldier list per region and resolves moves at once.
- Armada keeps a ship count per planet and sends fleets that land at the
  start of their owner's next turn.

The command processor talks only to GameRules, so each rule is written once.
Landing logic (reinforce, take an empty location, or fight) is shared; the
variants only decide how units are physically removed and stationed.
"""

import logging
import random
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from app.schemas.game_engine import (
    Armada,
    BattleReplay,
    CombatOutcome,
    CombatResult,
    GameState,
    GameVariant,
    Temple,
    UpgradeKind,
)

from .combat import resolve_combat, rng_for_battle
from .constants import ARMADA_TRAVEL_TURNS, MAX_RECENT_BATTLE_REPLAYS
from .events import (
    AnyGameEvent,
    ArmadaArrived,
    ArmadaDispatched,
    ArmyMoved,
    BattleFought,
    RegionConquered,
    SoldiersGenerated,
)
from .state import (
    add_armada,
    add_soldiers,
    owner_of,
    place_soldiers,
    regions_owned_by,
    remove_armada,
    require_region,
    set_owner,
    set_ships,
    set_temple,
    ships_at,
    soldiers_at,
    take_soldiers,
)
from .upgrades import temple_bonus, water_bonus

logger = logging.getLogger(__name__)


@dataclass
class Landing:
    """Outcome of units arriving at a location, before it is applied."""

    attacker_slot: int
    destination: int
    incoming: int
    defender_slot: int | None
    defenders: int
    combat: CombatResult | None = None

    @property
    def is_reinforcement(self) -> bool:
        return self.defender_slot == self.attacker_slot

    @property
    def captured(self) -> bool:
        if self.is_reinforcement:
            return False
        if self.combat is None:
            return True
        return self.combat.outcome == CombatOutcome.ATTACKER_WINS

    @property
    def survivors(self) -> int:
        return self.incoming if self.combat is None else self.combat.attackers_remaining

    @property
    def defender_losses(self) -> int:
        if self.combat is None:
            return 0
        return self.defenders - self.combat.defenders_remaining


class GameRules(ABC):
    """Capabilities the command processor needs from a game variant."""

    variant: GameVariant

    @abstractmethod
    def force_at(self, state: GameState, location: int) -> int:
        """Units stationed at a location."""

    @abstractmethod
    def total_forces(self, state: GameState) -> int:
        """Every unit in the game, stationed or in transit."""

    @abstractmethod
    def is_reachable(self, state: GameState, source: int, destination: int) -> bool:
        ...

    @abstractmethod
    def income(self, state: GameState, slot: int) -> int:
        ...

    @abstractmethod
    def dispatch(
        self,
        state: GameState,
        slot: int,
        source: int,
        destination: int,
        count: int,
        rng: random.Random | None = None,
    ) -> tuple[GameState, list[AnyGameEvent]]:
        """Send units from source toward destination."""

    @abstractmethod
    def _station(self, state: GameState, location: int, units: Any) -> GameState:
        """Put arriving units down at a location."""

    @abstractmethod
    def _remove_defenders(self, state: GameState, location: int, count: int) -> GameState:
        ...

    def attack_bonus(self, state: GameState, slot: int) -> int:
        return 0

    def defense_bonus(self, state: GameState, slot: int | None) -> int:
        return 0

    def on_capture(self, state: GameState, location: int) -> GameState:
        return state

    def end_of_turn_production(
        self, state: GameState, slot: int
    ) -> tuple[GameState, list[AnyGameEvent]]:
        return state, []

    def start_of_turn(
        self, state: GameState, slot: int, rng: random.Random | None = None
    ) -> tuple[GameState, list[AnyGameEvent]]:
        return state, []

    def forces_in_owned_regions(self, state: GameState, slot: int) -> int:
        return sum(self.force_at(state, r) for r in regions_owned_by(state, slot))

    def plan_landing(
        self,
        state: GameState,
        slot: int,
        destination: int,
        incoming: int,
        rng: random.Random | None = None,
    ) -> Landing:
        defender_slot = owner_of(state, destination)
        defenders = self.force_at(state, destination)
        landing = Landing(
            attacker_slot=slot,
            destination=destination,
            incoming=incoming,
            defender_slot=defender_slot,
            defenders=defenders,
        )
        if landing.is_reinforcement or defenders == 0:
            return landing

        landing.combat = resolve_combat(
            incoming,
            defenders,
            rng or rng_for_battle(state),
            attacker_bonus=self.attack_bonus(state, slot),
            defender_bonus=self.defense_bonus(state, defender_slot),
        )
        return landing

    def land(
        self,
        state: GameState,
        slot: int,
        destination: int,
        units: Any,
        incoming: int,
        rng: random.Random | None = None,
    ) -> tuple[GameState, list[AnyGameEvent]]:
        """Resolve units arriving at a location and apply the result."""
        landing = self.plan_landing(state, slot, destination, incoming, rng)
        events: list[AnyGameEvent] = []

        if landing.combat is not None:
            state = self._remove_defenders(state, destination, landing.defender_losses)
            replay = BattleReplay(
                region=destination,
                attacker_slot=slot,
                defender_slot=landing.defender_slot,
                attackers=landing.incoming,
                defenders=landing.defenders,
                result=landing.combat,
            )
            replays = [*state.recent_battle_replays, replay][-MAX_RECENT_BATTLE_REPLAYS:]
            state = state.model_copy(
                update={
                    "recent_battle_replays": replays,
                    "battle_counter": state.battle_counter + 1,
                }
            )
            events.append(BattleFought(replay=replay))
            logger.info(
                "Battle at region %d: attacker=%d (%d), defender=%s (%d), outcome=%s",
                destination,
                slot,
                landing.incoming,
                landing.defender_slot,
                landing.defenders,
                landing.combat.outcome.value,
            )

        if landing.survivors > 0:
            state = self._station(state, destination, self._survivors(units, landing.survivors))

        if landing.captured:
            state = set_owner(state, destination, slot)
            state = self.on_capture(state, destination)
            state = state.model_copy(
                update={"conquered_regions": [*state.conquered_regions, destination]}
            )
            events.append(
                RegionConquered(
                    player_slot=slot,
                    region=destination,
                    previous_owner=landing.defender_slot,
                )
            )

        return state, events

    def _survivors(self, units: Any, count: int) -> Any:
        return count


class ConquestRules(GameRules):
    variant = GameVariant.CONQUEST

    def force_at(self, state: GameState, location: int) -> int:
        return len(soldiers_at(state, location))

    def total_forces(self, state: GameState) -> int:
        return sum(len(soldiers) for soldiers in state.garrisons_by_region.values())

    def is_reachable(self, state: GameState, source: int, destination: int) -> bool:
        require_region(state, source)
        require_region(state, destination)
        return destination in state.regions[source].neighbors

    def income(self, state: GameState, slot: int) -> int:
        owned = regions_owned_by(state, slot)
        temple_soldiers = sum(
            self.force_at(state, r) for r in owned if r in state.temples_by_region
        )
        water_percent = water_bonus(state, slot)
        return ((len(owned) + temple_soldiers) * (100 + water_percent)) // 100

    def attack_bonus(self, state: GameState, slot: int) -> int:
        return temple_bonus(state, slot, UpgradeKind.FIRE)

    def defense_bonus(self, state: GameState, slot: int | None) -> int:
        return temple_bonus(state, slot, UpgradeKind.EARTH)

    def on_capture(self, state: GameState, location: int) -> GameState:
        # Conquered temples lose their upgrade
        temple = state.temples_by_region.get(location)
        if temple is None or temple.upgrade == UpgradeKind.NONE:
            return state
        return set_temple(state, Temple(region_index=location))

    def dispatch(
        self,
        state: GameState,
        slot: int,
        source: int,
        destination: int,
        count: int,
        rng: random.Random | None = None,
    ) -> tuple[GameState, list[AnyGameEvent]]:
        state, moving = take_soldiers(state, source, count)
        events: list[AnyGameEvent] = [
            ArmyMoved(player_slot=slot, source=source, destination=destination, count=count)
        ]
        state, landing_events = self.land(state, slot, destination, moving, count, rng)
        return state, events + landing_events

    def _survivors(self, units: Any, count: int) -> Any:
        return units[:count]

    def _station(self, state: GameState, location: int, units: Any) -> GameState:
        return place_soldiers(state, location, units)

    def _remove_defenders(self, state: GameState, location: int, count: int) -> GameState:
        state, _ = take_soldiers(state, location, count)
        return state

    def end_of_turn_production(
        self, state: GameState, slot: int
    ) -> tuple[GameState, list[AnyGameEvent]]:
        regions = [r for r in sorted(state.temples_by_region) if state.owners_by_region.get(r) == slot]
        for region in regions:
            state = add_soldiers(state, region, 1)
        if not regions:
            return state, []
        logger.debug("Temples produced soldiers: slot=%d, regions=%s", slot, regions)
        return state, [SoldiersGenerated(player_slot=slot, regions=regions)]


class ArmadaRules(GameRules):
    variant = GameVariant.ARMADA

    def force_at(self, state: GameState, location: int) -> int:
        return ships_at(state, location)

    def total_forces(self, state: GameState) -> int:
        return sum(state.ships_by_planet.values()) + sum(a.ships for a in state.armadas)

    def is_reachable(self, state: GameState, source: int, destination: int) -> bool:
        # Fleets may fly to any other planet
        require_region(state, source)
        require_region(state, destination)
        return source != destination

    def income(self, state: GameState, slot: int) -> int:
        return sum(state.regions[r].production for r in regions_owned_by(state, slot))

    def dispatch(
        self,
        state: GameState,
        slot: int,
        source: int,
        destination: int,
        count: int,
        rng: random.Random | None = None,
    ) -> tuple[GameState, list[AnyGameEvent]]:
        state = set_ships(state, source, ships_at(state, source) - count)
        armada = Armada(
            id=str(uuid.uuid4()),
            owner_slot=slot,
            ships=count,
            source=source,
            destination=destination,
            departure_turn=state.turn_number,
            arrival_turn=state.turn_number + ARMADA_TRAVEL_TURNS,
        )
        state = add_armada(state, armada)
        logger.info(
            "Armada dispatched: id=%s, slot=%d, %d -> %d, ships=%d",
            armada.id,
            slot,
            source,
            destination,
            count,
        )
        return state, [
            ArmadaDispatched(
                player_slot=slot,
                armada_id=armada.id,
                source=source,
                destination=destination,
                ships=count,
                arrival_turn=armada.arrival_turn,
            )
        ]

    def _station(self, state: GameState, location: int, units: Any) -> GameState:
        return set_ships(state, location, ships_at(state, location) + units)

    def _remove_defenders(self, state: GameState, location: int, count: int) -> GameState:
        return set_ships(state, location, ships_at(state, location) - count)

    def start_of_turn(
        self, state: GameState, slot: int, rng: random.Random | None = None
    ) -> tuple[GameState, list[AnyGameEvent]]:
        """Land the player's fleets that are due."""
        arriving = sorted(
            (
                a
                for a in state.armadas
                if a.owner_slot == slot and a.arrival_turn <= state.turn_number
            ),
            key=lambda a: a.id,
        )
        events: list[AnyGameEvent] = []
        for armada in arriving:
            state = remove_armada(state, armada.id)
            events.append(
                ArmadaArrived(
                    player_slot=slot,
                    armada_id=armada.id,
                    destination=armada.destination,
                    ships=armada.ships,
                )
            )
            state, landing_events = self.land(
                state, slot, armada.destination, armada.ships, armada.ships, rng
            )
            events.extend(landing_events)
        return state, events


_RULES: dict[GameVariant, GameRules] = {
    GameVariant.CONQUEST: ConquestRules(),
    GameVariant.ARMADA: ArmadaRules(),
}


def get_rules(state_or_variant: GameState | GameVariant) -> GameRules:
    variant = (
        state_or_variant.variant
        if isinstance(state_or_variant, GameState)
        else state_or_variant
    )
    return _RULES[variant]
