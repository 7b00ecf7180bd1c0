"""Concrete adapters for the interfaces in ``xlate.interfaces``."""
