from .observer import TelemetryObserver

__all__ = ["TelemetryObserver"]
