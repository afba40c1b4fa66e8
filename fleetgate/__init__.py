"""FleetGate: device authorization for fleet-tracking accounts."""

__version__ = "1.0.0"
