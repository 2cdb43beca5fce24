"""Multi-tenant organization products service."""

__version__ = "0.1.0"
