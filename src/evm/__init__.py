# evm/__init__.py
import logging

from evm.config.const import get_installed_version

logger = logging.getLogger(__name__)

__version__ = get_installed_version()
