"""Configuration dataclasses for the cell simulation core.

All frozen dataclasses that parameterise grid generation, the external
environment, and the tick driver live here.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from cell_sandbox.config.constants import (
    CELL_RADIUS,
    CONSERVATION_TOLERANCE,
    DEFAULT_DT,
    DEFAULT_EXTERNAL_CONCENTRATIONS,
    DEFAULT_LIGAND_PRESENCE,
    DEFAULT_REFUND_FRACTION,
    GRID_RADIUS,
    HEX_SIZE,
)

__all__ = [
    "GridConfig",
    "EnvironmentConfig",
    "SimulationConfig",
]


@dataclass(frozen=True)
class GridConfig:
    """Hex grid geometry: tile size, nominal cell radius, generation radius."""

    hex_size: float = HEX_SIZE
    cell_radius: float = CELL_RADIUS
    grid_radius: int = GRID_RADIUS
    center: tuple[float, float] = (0.0, 0.0)

    def __post_init__(self) -> None:
        if self.hex_size <= 0.0:
            raise ValueError("hex_size must be > 0")
        if self.cell_radius <= self.hex_size:
            raise ValueError("cell_radius must be > hex_size")
        if self.grid_radius < 0:
            raise ValueError("grid_radius must be >= 0")

    @property
    def filter_radius(self) -> float:
        """World-space radius used to trim the hex region into a cell shape."""
        return self.cell_radius - self.hex_size


@dataclass(frozen=True)
class EnvironmentConfig:
    """Constant external environment seen through the membrane."""

    external_concentrations: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_EXTERNAL_CONCENTRATIONS)
    )
    ligand_presence: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_LIGAND_PRESENCE)
    )

    def __post_init__(self) -> None:
        if any(v < 0.0 for v in self.external_concentrations.values()):
            raise ValueError("external_concentrations values must be >= 0")
        if any(v < 0.0 for v in self.ligand_presence.values()):
            raise ValueError("ligand_presence values must be >= 0")


@dataclass(frozen=True)
class SimulationConfig:
    """Tick-driver parameters including grid geometry and environment."""

    dt: float = DEFAULT_DT
    refund_fraction: float = DEFAULT_REFUND_FRACTION
    conservation_tolerance: float = CONSERVATION_TOLERANCE
    track_conservation: bool = True
    hex_size: float = HEX_SIZE
    cell_radius: float = CELL_RADIUS
    grid_radius: int = GRID_RADIUS
    center: tuple[float, float] = (0.0, 0.0)
    external_concentrations: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_EXTERNAL_CONCENTRATIONS)
    )
    ligand_presence: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_LIGAND_PRESENCE)
    )

    def __post_init__(self) -> None:
        if self.dt <= 0.0:
            raise ValueError("dt must be > 0")
        if not 0.0 <= self.refund_fraction <= 1.0:
            raise ValueError("refund_fraction must be in [0.0, 1.0]")
        if self.conservation_tolerance < 0.0:
            raise ValueError("conservation_tolerance must be >= 0")
        GridConfig(
            hex_size=self.hex_size,
            cell_radius=self.cell_radius,
            grid_radius=self.grid_radius,
            center=self.center,
        )
        EnvironmentConfig(
            external_concentrations=self.external_concentrations,
            ligand_presence=self.ligand_presence,
        )

    @classmethod
    def from_components(
        cls,
        grid: GridConfig | None = None,
        environment: EnvironmentConfig | None = None,
        dt: float = DEFAULT_DT,
        refund_fraction: float = DEFAULT_REFUND_FRACTION,
        conservation_tolerance: float = CONSERVATION_TOLERANCE,
        track_conservation: bool = True,
    ) -> "SimulationConfig":
        """Compose SimulationConfig from reusable sub-config components."""
        grid = grid or GridConfig()
        environment = environment or EnvironmentConfig()
        return cls(
            dt=dt,
            refund_fraction=refund_fraction,
            conservation_tolerance=conservation_tolerance,
            track_conservation=track_conservation,
            hex_size=grid.hex_size,
            cell_radius=grid.cell_radius,
            grid_radius=grid.grid_radius,
            center=grid.center,
            external_concentrations=dict(environment.external_concentrations),
            ligand_presence=dict(environment.ligand_presence),
        )

    def to_components(self) -> tuple[GridConfig, EnvironmentConfig]:
        """Decompose SimulationConfig into grid and environment components."""
        return (
            GridConfig(
                hex_size=self.hex_size,
                cell_radius=self.cell_radius,
                grid_radius=self.grid_radius,
                center=self.center,
            ),
            EnvironmentConfig(
                external_concentrations=dict(self.external_concentrations),
                ligand_presence=dict(self.ligand_presence),
            ),
        )
