"""Errors raised by the valuation engine before any simulation runs."""


class InvalidInputError(ValueError):
    """Raised when a SimulationInput or its data cannot drive a simulation."""
