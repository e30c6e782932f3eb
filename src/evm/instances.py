# evm/instances.py
_settings = None
_manager = None


def get_settings_instance():
    global _settings
    if _settings is None:
        from .config.settings import Settings

        _settings = Settings()
    return _settings


def get_manager_instance():
    global _manager
    if _manager is None:
        from .core import VersionManager

        _manager = VersionManager(get_settings_instance())
    return _manager


def reset_instances():
    """Forgets the cached settings and manager, e.g. after EVM_HOME changed."""
    global _settings, _manager
    _settings = None
    _manager = None
