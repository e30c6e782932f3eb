from .manager import VersionManager
from .registry import VersionRegistry
from .server import ServerController

__all__ = ["VersionManager", "VersionRegistry", "ServerController"]
