"""Uniform per-tile sources and sinks (basal consumption, background leakage).

Each enabled effect adds ``rate * dt`` of its species to every tile, clamped.
``total_effect_rate`` is the nominal whole-grid rate the conservation oracle
compares observed changes against.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace

from cell_sandbox.domain.hex_grid import HexGrid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PassiveEffect:
    species_id: str
    rate: float
    """Units per second per tile; negative for consumption."""
    enabled: bool = False
    label: str = ""


def default_passive_effects() -> list[PassiveEffect]:
    return [
        PassiveEffect("ATP", -0.5, enabled=False, label="Basal ATP consumption"),
        PassiveEffect("ROS", 0.2, enabled=False, label="Background ROS production"),
    ]


class PassiveEffects:
    """Registry of passive effects keyed by species id."""

    def __init__(self, grid: HexGrid, effects: Iterable[PassiveEffect] | None = None) -> None:
        self.grid = grid
        self._effects: dict[str, PassiveEffect] = {}
        for effect in default_passive_effects() if effects is None else effects:
            self.add_effect(effect)

    def add_effect(self, effect: PassiveEffect) -> None:
        """Register ``effect``, replacing any existing effect for the same species."""
        self._effects[effect.species_id] = effect

    def remove_effect(self, species_id: str) -> bool:
        return self._effects.pop(species_id, None) is not None

    def set_enabled(self, species_id: str, enabled: bool) -> bool:
        effect = self._effects.get(species_id)
        if effect is None:
            return False
        self._effects[species_id] = replace(effect, enabled=enabled)
        logger.info("Passive effect %s %s", species_id, "enabled" if enabled else "disabled")
        return True

    def set_all_enabled(self, enabled: bool) -> None:
        for species_id in list(self._effects):
            self._effects[species_id] = replace(self._effects[species_id], enabled=enabled)

    def get_effect(self, species_id: str) -> PassiveEffect | None:
        return self._effects.get(species_id)

    def get_all_effects(self) -> list[PassiveEffect]:
        return list(self._effects.values())

    def step(self, dt: float) -> None:
        if dt <= 0.0:
            return
        coords = self.grid.coords()
        for effect in self._effects.values():
            if not effect.enabled or effect.rate == 0.0:
                continue
            delta = effect.rate * dt
            for coord in coords:
                self.grid.add_concentration(coord, effect.species_id, delta)

    def total_effect_rate(self, species_id: str) -> float:
        """Nominal whole-grid rate for ``species_id`` (0 when absent or disabled)."""
        effect = self._effects.get(species_id)
        if effect is None or not effect.enabled:
            return 0.0
        return effect.rate * self.grid.tile_count

    def active_summary(self) -> list[str]:
        return [
            f"{effect.species_id}: {effect.rate:+.3f}/s per tile"
            for effect in self._effects.values()
            if effect.enabled
        ]
