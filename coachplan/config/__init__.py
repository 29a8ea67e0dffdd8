# Initializes config package (imports Settings instance)

from .config import Settings, get_database_url, settings

__all__ = ["Settings", "settings", "get_database_url"]
