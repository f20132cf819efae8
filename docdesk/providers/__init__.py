"""Concrete adapters for the interfaces in ``docdesk.interfaces``."""
