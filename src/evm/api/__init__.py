from . import plugins, server, utils, versions

__all__ = ["plugins", "server", "utils", "versions"]
