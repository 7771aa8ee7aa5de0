"""Runtime wiring: the logger façade and its background flush thread."""

from telemetripy.runtime.engine import TelemetryLogger
from telemetripy.runtime.flusher import PeriodicFlusher

__all__ = ["PeriodicFlusher", "TelemetryLogger"]
