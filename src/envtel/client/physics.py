"""Buoyancy physics for a spherical hot-air envelope.

Air is treated as an ideal gas::

    rho = P / (R * T)        P in Pa, T in K, R = 287.058 J/(kg*K)

and lift is the weight of displaced ambient air minus the weight of the
heated air inside the envelope::

    L = (rho_outside - rho_inside) * V * g
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from envtel.core.units import f_to_kelvin, ft_to_m

R_SPECIFIC_AIR = 287.058
STANDARD_GRAVITY = 9.80665
NEWTONS_PER_LBF = 4.4482216152605
CUBIC_FEET_PER_M3 = 35.314666721488590
STANDARD_PRESSURE_HPA = 1013.25


def sphere_volume_m3(diameter_m: float) -> float:
    radius = diameter_m / 2.0
    return (4.0 / 3.0) * math.pi * radius ** 3


def air_density(pressure_hpa: float, temperature_k: float) -> float:
    """Dry air density in kg/m^3."""
    if temperature_k <= 0:
        raise ValueError(f"Absolute temperature must be positive, got {temperature_k} K")
    return (pressure_hpa * 100.0) / (R_SPECIFIC_AIR * temperature_k)


def newtons_to_lbf(newtons: float) -> float:
    return newtons / NEWTONS_PER_LBF


@dataclass(frozen=True)
class LiftEstimate:
    diameter_ft: float
    volume_m3: float
    rho_outside: float
    rho_inside: float
    lift_n: float

    @property
    def volume_ft3(self) -> float:
        return self.volume_m3 * CUBIC_FEET_PER_M3

    @property
    def lift_lbf(self) -> float:
        return newtons_to_lbf(self.lift_n)

    @property
    def will_rise(self) -> bool:
        return self.lift_n > 0

    @property
    def annotation(self) -> str | None:
        """Presentation note for non-positive lift; the value itself is not clamped."""
        if self.will_rise:
            return None
        return "balloon would not rise"


def estimate_lift(
    diameter_ft: float,
    ambient_f: float,
    envelope_f: float,
    pressure_hpa: float = STANDARD_PRESSURE_HPA,
) -> LiftEstimate:
    """Lift of a sphere of ``diameter_ft`` filled with air at ``envelope_f``.

    The same static pressure is assumed inside and outside the envelope.
    Negative lift (envelope colder than ambient) is returned as computed.
    """
    if diameter_ft <= 0:
        raise ValueError(f"diameter_ft must be positive, got {diameter_ft}")
    volume = sphere_volume_m3(ft_to_m(diameter_ft))
    rho_out = air_density(pressure_hpa, f_to_kelvin(ambient_f))
    rho_in = air_density(pressure_hpa, f_to_kelvin(envelope_f))
    return LiftEstimate(
        diameter_ft=diameter_ft,
        volume_m3=volume,
        rho_outside=rho_out,
        rho_inside=rho_in,
        lift_n=(rho_out - rho_in) * volume * STANDARD_GRAVITY,
    )
