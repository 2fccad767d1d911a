"""Replace functions and methods during tests and verify how they were called."""

__version__ = "0.4.0"

__all__ = ["asyncfake", "fake", "funcref", "injector", "verifier"]