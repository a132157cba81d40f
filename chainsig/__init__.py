"""Coordination state machine, configuration, serialization and HPKE sealing for a threshold signing network."""

__version__ = "0.1.0"

__all__ = [
    "config",
    "contract",
    "errors",
    "hpke",
    "node_config",
    "primitives",
    "requests",
    "state",
    "types",
    "update",
]