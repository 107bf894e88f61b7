"""
Exceptions raised by the place resolution engine.

Infrastructure errors coming from a spatial store (unreachable database,
driver timeouts) are not wrapped; they reach the caller unchanged.
"""


class ResolutionError(Exception):
    """Raised when a spatial store hands back a row the engine cannot use."""


class ResolutionTimeout(TimeoutError):
    """Raised when a resolve call exceeds its overall deadline."""

    def __init__(self, latitude: float, longitude: float, timeout: float):
        super().__init__(
            f"Resolving ({latitude:.5f}, {longitude:.5f}) exceeded {timeout:.3f}s"
        )
        self.latitude = latitude
        self.longitude = longitude
        self.timeout = timeout
