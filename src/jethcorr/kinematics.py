"""Angular and momentum helpers for jet-hadron correlations."""

from __future__ import annotations

import math

PI = math.pi
PI_HALF = 0.5 * math.pi
TWO_PI = 2.0 * math.pi

# Lower edge of the jet-hadron delta-phi range, centres near and away side.
DELTA_PHI_LOWER = -PI_HALF


def wrap_angle(delta: float, lower_bound: float = DELTA_PHI_LOWER) -> float:
    """Map an angle into `[lower_bound, lower_bound + 2*pi)`."""
    if not math.isfinite(delta):
        return delta
    value = lower_bound + (delta - lower_bound) % TWO_PI
    # Float rounding can land exactly on the open upper edge.
    if value >= lower_bound + TWO_PI:
        value -= TWO_PI
    if value < lower_bound:
        value = lower_bound
    return value


def delta_r(delta_eta: float, delta_phi_wrapped: float) -> float:
    """Angular distance from a pseudorapidity and a wrapped azimuth difference."""
    return math.sqrt(delta_eta * delta_eta + delta_phi_wrapped * delta_phi_wrapped)


def eta_flip(eta_leading: float, eta_subleading: float) -> float:
    """Sign that makes the leading jet the one at larger pseudorapidity."""
    return 1.0 if eta_leading > eta_subleading else -1.0


def corrected_pt(pt: float, area: float, rho: float) -> float:
    """Area-based underlying-event subtraction `pt - rho * area`."""
    return pt - rho * area


def pt_hat(weight: float, exponent: float) -> float:
    """Estimate the hard-scattering scale from a generator event weight.

    `pTHat = 10 / weight**(1/exponent)`. Non-positive weights carry no
    information about the scale and map to infinity.
    """
    if weight <= 0.0:
        return math.inf
    return 10.0 / (weight ** (1.0 / exponent))


def jet_area_limit(area_fraction_min: float, r: int) -> float:
    """Minimum jet area for a fraction of the nominal `pi * R^2` area."""
    radius = r / 100.0
    return area_fraction_min * PI * radius * radius


def dijet_asymmetry(leading_pt: float, subleading_pt: float) -> float:
    """Momentum balance `x_J = pt_sub / pt_lead` (0 for a non-positive leading pt)."""
    if leading_pt <= 0.0:
        return 0.0
    return subleading_pt / leading_pt
