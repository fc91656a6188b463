"""Pre-flight decision gates for automated issue and pull request workflows."""

__version__ = "0.1.0"
