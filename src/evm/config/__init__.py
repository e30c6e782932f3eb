from .const import (
    package_name,
    app_name_title,
    env_name,
    product_name,
    get_installed_version,
)

__all__ = [
    "package_name",
    "app_name_title",
    "env_name",
    "product_name",
    "get_installed_version",
]
