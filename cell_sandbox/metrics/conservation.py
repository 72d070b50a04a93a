"""Whole-grid species totals and their rate of change.

The oracle sums each species over all tiles on every ``update`` and derives a
change rate from the previous reading. Observed rates are compared against an
expected-rate provider (normally passive effects) with a relative tolerance
band; a species with no expected change should stay conserved.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from cell_sandbox.config.constants import CONSERVATION_CHECK_PERCENT, CONSERVATION_TOLERANCE
from cell_sandbox.domain.hex_grid import HexGrid

logger = logging.getLogger(__name__)

ExpectedRate = Callable[[str], float]

# Absolute slack added to every tolerance band to absorb float noise.
_RATE_EPSILON = 1e-9


@dataclass
class ConservationData:
    """Latest reading for one species."""

    species_id: str
    total_amount: float = 0.0
    last_amount: float = 0.0
    change_rate: float = 0.0
    """Units per second between the last two updates."""


@dataclass(frozen=True)
class ConservationCheck:
    species_id: str
    expected: float
    observed: float
    tolerance: float
    within_tolerance: bool


def _no_expected_change(species_id: str) -> float:
    return 0.0


class ConservationOracle:
    """Tracks per-species totals across a HexGrid."""

    def __init__(
        self,
        grid: HexGrid,
        expected_rate: ExpectedRate | None = None,
        clock: Callable[[], float] = time.monotonic,
        tolerance: float = CONSERVATION_TOLERANCE,
    ) -> None:
        if tolerance < 0.0:
            raise ValueError("tolerance must be >= 0")
        self.grid = grid
        self.expected_rate = expected_rate or _no_expected_change
        self.tolerance = tolerance
        self._clock = clock
        self._data: dict[str, ConservationData] = {}
        self._last_time: float | None = None
        self.is_paused = False
        self.reset()

    def reset(self) -> None:
        self._data = {sid: ConservationData(species_id=sid) for sid in self.grid.species.ids}
        self._last_time = None
        logger.info("Conservation tracking reset")

    def update(self, dt: float | None = None) -> None:
        """Take a new reading.

        ``dt`` is the elapsed simulated time in seconds; when omitted the
        clock delta since the previous update is used. The first reading
        after construction or ``reset`` leaves rates at zero.
        """
        if self.is_paused:
            return
        now = self._clock()
        first = self._last_time is None
        if dt is None:
            elapsed = 0.0 if self._last_time is None else now - self._last_time
        else:
            elapsed = dt
        totals = self.grid.totals()
        for species_id, data in self._data.items():
            total = totals.get(species_id, 0.0)
            data.last_amount = data.total_amount
            data.total_amount = total
            if not first and elapsed > 0.0:
                data.change_rate = (total - data.last_amount) / elapsed
        self._last_time = now

    def get_conservation_data(self, species_id: str) -> ConservationData | None:
        return self._data.get(species_id)

    def get_all_conservation_data(self) -> list[ConservationData]:
        return list(self._data.values())

    def compare(self, species_id: str) -> ConservationCheck | None:
        """Observed vs expected change rate for one species."""
        data = self._data.get(species_id)
        if data is None:
            return None
        return self._check(data)

    def _check(self, data: ConservationData) -> ConservationCheck:
        expected = self.expected_rate(data.species_id)
        band = abs(expected * self.tolerance)
        return ConservationCheck(
            species_id=data.species_id,
            expected=expected,
            observed=data.change_rate,
            tolerance=band,
            within_tolerance=abs(data.change_rate - expected) <= band + _RATE_EPSILON,
        )

    def check_conservation(self, tolerance_percent: float = CONSERVATION_CHECK_PERCENT) -> bool:
        """True if every species with no expected change drifts by at most
        ``tolerance_percent`` of its total per second."""
        for data in self._data.values():
            if self.expected_rate(data.species_id) != 0.0:
                continue
            change_percent = abs(data.change_rate / max(data.total_amount, 1.0)) * 100.0
            if change_percent > tolerance_percent:
                return False
        return True

    def get_summary_report(self) -> list[str]:
        lines = ["=== CONSERVATION REPORT ==="]
        for data in self._data.values():
            check = self._check(data)
            mark = "ok" if check.within_tolerance else "DRIFT"
            lines.append(
                f"{data.species_id}: {data.total_amount:.1f} "
                f"({data.change_rate:+.2f}/s) [expected: {check.expected:+.2f}/s] {mark}"
            )
        if self.is_paused:
            lines.append("*** TRACKING PAUSED ***")
        return lines

    def pause(self) -> None:
        self.is_paused = True

    def resume(self) -> None:
        self.is_paused = False

    def toggle_pause(self) -> bool:
        self.is_paused = not self.is_paused
        logger.info("Conservation tracking %s", "paused" if self.is_paused else "resumed")
        return self.is_paused
