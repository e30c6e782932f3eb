# evm/config/const.py
from importlib.metadata import version, PackageNotFoundError

# --- Package Constants ---
package_name = "evm"
app_name_title = "Elasticsearch Version Manager"
env_name = package_name.upper()

# --- Managed Product ---
product_name = "elasticsearch"
PID_FILENAME = f"{product_name}.pid"
CONFIG_FILENAME = f"{package_name}.json"


def get_installed_version() -> str:
    try:
        installed_version = version(package_name)
        return installed_version
    except PackageNotFoundError:
        installed_version = "0.0.0"
        return installed_version
