"""Core data models used by the jet-hadron correlation framework.

This module defines:
- immutable event objects (`Collision`, `McCollision`, `Jet`, `Track`, `Particle`)
- event containers (`EventInput`, `McEventInput`)
- correlation outputs (`CorrelationTuple`)
- configurable selection controls (`EventCuts`, `TrackCuts`, `JetCuts`,
  `PtHatCuts`, `MixingConfig`, `RegionCuts`, `AnalysisConfig`).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Protocol

from .kinematics import corrected_pt

SENTINEL_DISABLED_MIN = -98.0
SENTINEL_DISABLED_MAX = 9998.0


class Hadron(Protocol):
    """Anything that can act as the associated partner of a jet."""

    pt: float
    eta: float
    phi: float

    @property
    def hadron_id(self) -> str: ...

    def selection_class(self) -> int | None: ...


class CentralityEstimator(enum.IntEnum):
    """Centrality estimator index as configured by the user."""

    FT0C = 0
    FT0A = 1
    FT0M = 2


class SplitCollisionMode(enum.IntEnum):
    """How truth events reconstructed as several collisions are treated."""

    REJECT = 0
    ACCEPT_ANY = 1
    ACCEPT_FIRST = 2


class Level(str, enum.Enum):
    """Analysis level of the jets and partners."""

    DATA = "data"
    MCD = "mcd"
    MCP = "mcp"


class MixingFailurePolicy(str, enum.Enum):
    """What a failing mixed pair does to the rest of the processing step."""

    ABORT = "abort"
    SKIP = "skip"


@dataclass(frozen=True)
class Collision:
    """One reconstructed collision with its event-level estimators."""

    collision_id: str
    pos_z: float
    cent_ft0c: float = -1.0
    cent_ft0a: float = -1.0
    cent_ft0m: float = -1.0
    mult_ntracks_global: float = 0.0
    mult_ft0m: float = 0.0
    mult_ft0a: float = 0.0
    occupancy: int = 0
    rho: float = 0.0
    weight: float = 1.0
    selection_bits: int = 0
    is_mb_gap: bool = False
    mc_collision_id: str | None = None

    def centrality(self, estimator: CentralityEstimator = CentralityEstimator.FT0M) -> float:
        """Return the centrality for the chosen estimator."""
        if estimator == CentralityEstimator.FT0C:
            return self.cent_ft0c
        if estimator == CentralityEstimator.FT0A:
            return self.cent_ft0a
        return self.cent_ft0m

    def multiplicity(self, estimator: str = "ntracks_global") -> float:
        """Return the multiplicity for a named estimator."""
        return _multiplicity(self, estimator)


@dataclass(frozen=True)
class McCollision:
    """Generator-level collision; may map to zero, one or many reco collisions."""

    mc_collision_id: str
    pos_z: float
    rho: float = 0.0
    weight: float = 1.0
    mult_ft0a: float = 0.0
    mult_ntracks_global: float = 0.0
    is_mb_gap: bool = False

    @property
    def collision_id(self) -> str:
        return self.mc_collision_id

    def multiplicity(self, estimator: str = "ft0a") -> float:
        """Return the multiplicity for a named estimator."""
        return _multiplicity(self, estimator)


@dataclass(frozen=True)
class Jet:
    """Charged-particle jet; `r` is the resolution parameter times 100."""

    jet_id: str
    pt: float
    eta: float
    phi: float
    r: int
    area: float
    constituent_ids: tuple[str, ...] = ()
    event_weight: float = 1.0

    @property
    def radius(self) -> float:
        """Resolution parameter in natural units."""
        return self.r / 100.0

    def corrected_pt(self, rho: float) -> float:
        """Background-subtracted transverse momentum `pt - rho * area`."""
        return corrected_pt(self.pt, self.area, rho)


@dataclass(frozen=True)
class Track:
    """Reconstructed charged track with its track-selection bit set."""

    track_id: str
    pt: float
    eta: float
    phi: float
    selection_bits: int = 0

    @property
    def hadron_id(self) -> str:
        return self.track_id

    def selection_class(self) -> int | None:
        return self.selection_bits


@dataclass(frozen=True)
class Particle:
    """Generator-level charged particle; carries no detector selection."""

    particle_id: str
    pt: float
    eta: float
    phi: float

    @property
    def hadron_id(self) -> str:
        return self.particle_id

    def selection_class(self) -> int | None:
        return None


@dataclass(frozen=True)
class EventInput:
    """One reconstructed event payload with its jets and tracks."""

    collision: Collision
    jets: tuple[Jet, ...] = ()
    tracks: tuple[Track, ...] = ()

    @property
    def event_id(self) -> str:
        return self.collision.collision_id

    @property
    def partners(self) -> tuple[Track, ...]:
        return self.tracks


@dataclass(frozen=True)
class McEventInput:
    """One truth event with its reconstructed collisions, jets and particles."""

    mc_collision: McCollision
    reco_collisions: tuple[Collision, ...] = ()
    jets: tuple[Jet, ...] = ()
    particles: tuple[Particle, ...] = ()

    @property
    def event_id(self) -> str:
        return self.mc_collision.mc_collision_id

    @property
    def collision(self) -> McCollision:
        return self.mc_collision

    @property
    def partners(self) -> tuple[Particle, ...]:
        return self.particles


@dataclass(frozen=True)
class CorrelationTuple:
    """One jet (or leading jet) x partner correlation entry.

    Inclusive jet-hadron entries leave `subleading_pt` and `delta_eta_jets`
    unset and carry `delta_r`; leading-jet entries carry the dijet quantities.
    `pool_bin` and `partner_event_id` are set for mixed-event entries only.
    """

    mode: str
    mixed: bool
    event_id: str
    trigger_pt: float
    partner_pt: float
    delta_eta_total: float
    delta_eta: float
    delta_phi: float
    weight: float = 1.0
    subleading_pt: float | None = None
    delta_eta_jets: float | None = None
    delta_r: float | None = None
    pool_bin: int | None = None
    partner_event_id: str | None = None
    regions: tuple[str, ...] = ()


@dataclass(frozen=True)
class EventCuts:
    """Event-level selection shared by same-event and mixed-event paths."""

    vertex_z_cut: float = 10.0
    centrality_min: float = -999.0
    centrality_max: float = 999.0
    occupancy_min: int = -999999
    occupancy_max: int = 999999
    event_selections: str = "sel8"
    skip_mb_gap_events: bool = False
    centrality_estimator: int = CentralityEstimator.FT0M
    split_collisions: int = SplitCollisionMode.REJECT

    def __post_init__(self) -> None:
        if self.centrality_estimator not in tuple(CentralityEstimator):
            raise ValueError(
                f"Unknown centrality estimator index {self.centrality_estimator!r}. "
                "Use 0 (FT0C), 1 (FT0A) or 2 (FT0M)."
            )
        if self.split_collisions not in tuple(SplitCollisionMode):
            raise ValueError(
                f"Unknown split-collision mode {self.split_collisions!r}. "
                "Use 0 (reject), 1 (accept any) or 2 (accept, check first only)."
            )


@dataclass(frozen=True)
class TrackCuts:
    """Kinematic window and selection class for associated tracks/particles."""

    eta_min: float = -0.9
    eta_max: float = 0.9
    pt_min: float = 0.15
    pt_max: float = 100.0
    track_selections: str = "globalTracks"


@dataclass(frozen=True)
class JetCuts:
    """Jet acceptance and leading/subleading thresholds.

    The area-fraction and leading-constituent bounds are disabled when left at
    their sentinel values (below -98 and above 9998 respectively).
    """

    selected_radius: float = 0.4
    eta_min: float = -0.7
    eta_max: float = 0.7
    area_fraction_min: float = -99.0
    leading_constituent_pt_min: float = -99.0
    leading_constituent_pt_max: float = 9999.0
    check_lead_constituent_pt_for_mcp: bool = False
    leading_jet_pt_min: float = 20.0
    subleading_jet_pt_min: float = 10.0

    @property
    def selected_r(self) -> int:
        """Selected resolution parameter in the integer jet encoding."""
        return int(round(self.selected_radius * 100.0))


@dataclass(frozen=True)
class PtHatCuts:
    """Simulation outlier rejection based on the event generation weight."""

    exponent: float = 6.0
    max_mcd: float = 999.0
    max_mcp: float = 999.0
    absolute_min: float = -99.0


@dataclass(frozen=True)
class MixingConfig:
    """Event-mixing pool layout and depth."""

    events_mixed: int = 5
    bins_z: tuple[float, ...] = (-10.0, -2.5, 2.5, 10.0)
    bins_multiplicity: tuple[float, ...] = (0.0, 15.0, 25.0, 35.0, 50.0)
    multiplicity_estimator: str = "ntracks_global"
    failure_policy: str = MixingFailurePolicy.ABORT.value

    def __post_init__(self) -> None:
        if self.events_mixed < 1:
            raise ValueError("Mixing depth 'events_mixed' must be at least 1.")
        for name, edges in (("bins_z", self.bins_z), ("bins_multiplicity", self.bins_multiplicity)):
            if len(edges) < 2 or any(b <= a for a, b in zip(edges, edges[1:])):
                raise ValueError(f"Mixing bin edges '{name}' must be strictly increasing with >= 2 edges.")
        if self.multiplicity_estimator not in _MULTIPLICITY_FIELDS:
            supported = ", ".join(sorted(_MULTIPLICITY_FIELDS))
            raise ValueError(
                f"Unknown multiplicity estimator '{self.multiplicity_estimator}'. Supported: {supported}"
            )
        MixingFailurePolicy(self.failure_policy)


@dataclass(frozen=True)
class RegionCuts:
    """Thresholds of the physical-cut regions of leading-jet correlations."""

    partner_pt_max: float = 2.0
    eta_gap_low: float = 0.5
    eta_gap_high: float = 1.0
    subleading_eta_min: float = 0.0


@dataclass(frozen=True)
class AnalysisConfig:
    """Complete, immutable configuration passed to every component."""

    event: EventCuts = field(default_factory=EventCuts)
    track: TrackCuts = field(default_factory=TrackCuts)
    jet: JetCuts = field(default_factory=JetCuts)
    pthat: PtHatCuts = field(default_factory=PtHatCuts)
    mixing: MixingConfig = field(default_factory=MixingConfig)
    regions: RegionCuts = field(default_factory=RegionCuts)


_MULTIPLICITY_FIELDS: dict[str, str] = {
    "ntracks_global": "mult_ntracks_global",
    "ft0m": "mult_ft0m",
    "ft0a": "mult_ft0a",
}


def _multiplicity(event: object, estimator: str) -> float:
    try:
        attr = _MULTIPLICITY_FIELDS[estimator]
    except KeyError as exc:
        supported = ", ".join(sorted(_MULTIPLICITY_FIELDS))
        raise ValueError(
            f"Unknown multiplicity estimator '{estimator}'. Supported: {supported}"
        ) from exc
    return float(getattr(event, attr, 0.0))

