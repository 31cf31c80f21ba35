"""varbench — compare a workspace component built with and without a feature."""

__version__ = "0.1.0"
