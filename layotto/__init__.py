"""Application runtime building blocks: RPC, channels, protocols and actuator."""

__version__ = "0.1.0"