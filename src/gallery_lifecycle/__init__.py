"""Gallery lifecycle engine: event retention sweeps and account teardown."""

__version__ = "0.1.0"
