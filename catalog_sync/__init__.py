"""Keep localized JSON string catalogs in sync with an evolving source catalog."""

__version__ = "0.3.0"
