"""
Envelope Telemetry (envtel)
~~~~~~~~~~~~~~~~~~~~~~~~~~~

Sensor acquisition, fallback and derived flight metrics for a hot-air
balloon telemetry node and its remote observers.
"""

from envtel.__version__ import __version__

__all__ = ["__version__"]
