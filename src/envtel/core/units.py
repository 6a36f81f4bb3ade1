"""Unit normalisation and conversion helpers.

Pressure heuristic
------------------
Barometer drivers do not agree on the unit they report. The raw scalar is
classified purely by magnitude:

    raw > 2000   assumed Pa,  divided by 100
    raw < 50     assumed kPa, multiplied by 100
    otherwise    assumed hPa, unchanged

This is a heuristic, not a measurement. It is only correct while the sensor
stays inside the bands above; readings that straddle 50 or 2000 hPa are
ambiguous. The thresholds are kept as-is for compatibility with existing
nodes.
"""

from __future__ import annotations

PA_THRESHOLD = 2000.0
KPA_THRESHOLD = 50.0

FEET_TO_METRES = 0.3048
KELVIN_OFFSET = 273.15


def normalize_pressure_hpa(raw: float) -> float:
    """Return ``raw`` converted to hPa using the magnitude heuristic."""
    if raw > PA_THRESHOLD:
        return raw / 100.0
    if raw < KPA_THRESHOLD:
        return raw * 100.0
    return raw


def c_to_f(celsius: float) -> float:
    return celsius * 9.0 / 5.0 + 32.0


def f_to_c(fahrenheit: float) -> float:
    return (fahrenheit - 32.0) * 5.0 / 9.0


def f_to_kelvin(fahrenheit: float) -> float:
    return f_to_c(fahrenheit) + KELVIN_OFFSET


def ft_to_m(feet: float) -> float:
    return feet * FEET_TO_METRES
