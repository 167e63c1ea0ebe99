"""RouterOS telemetry agent - polls routers and writes typed points to InfluxDB."""

__version__ = "0.4.0"
