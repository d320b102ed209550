"""rel - pre/post deployment actions for release pipelines."""

__version__ = "0.4.0"
