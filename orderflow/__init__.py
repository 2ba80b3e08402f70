"""OrderFlow: rental order, inbound stock and service request lifecycle engine."""

__version__ = "1.0.0"
