"""Ingestion layer.

Adapters that read raw battery sensor values from the environment and turn
them into :class:`pybatmon.models.SensorReading` objects.
"""

__all__: list[str] = []
