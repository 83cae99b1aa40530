"""Keeps a gateway's provider, model and pipeline configuration in sync with a remote configuration API."""

__version__ = "0.1.0"
