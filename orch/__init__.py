"""TruthDB organization admin tooling."""

__version__ = "0.1.0"
