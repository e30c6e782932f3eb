# evm/config/product_lines.py
"""Per-major-version differences between Elasticsearch release lines.

Elasticsearch changed its archive naming, the command-line syntax used to
point the server at a configuration directory, and the name and syntax of
its plugin tool several times. Those differences are kept here as data so
that supporting a new release line means adding a row to
:data:`PRODUCT_LINES` rather than touching the start or plugin logic.
"""
from dataclasses import dataclass, field
from typing import Dict, Tuple

PLUGIN_EXECUTABLES = ("elasticsearch-plugin", "plugin")


@dataclass(frozen=True)
class ProductLine:
    """Describes how one range of major versions is downloaded and driven.

    Attributes:
        min_major: The first major version this line applies to.
        archive_template: File name of the release archive, with a
            ``{version}`` placeholder.
        config_flag_template: Command-line argument that sets the
            configuration directory, with a ``{path}`` placeholder.
        plugin_executable: Preferred name of the plugin tool in ``bin/``.
        plugin_actions: Maps each plugin action name to the spelling the
            plugin tool expects.
    """

    min_major: int
    archive_template: str
    config_flag_template: str
    plugin_executable: str
    plugin_actions: Dict[str, str] = field(default_factory=dict)

    def archive_name(self, version: str) -> str:
        return self.archive_template.format(version=version)

    def config_flag(self, path: str) -> str:
        return self.config_flag_template.format(path=path)


_SUBCOMMAND_ACTIONS = {"list": "list", "install": "install", "remove": "remove"}

# Ordered by min_major, ascending.
PRODUCT_LINES: Tuple[ProductLine, ...] = (
    ProductLine(
        min_major=0,
        archive_template="elasticsearch-{version}.tar.gz",
        config_flag_template="-Des.path.conf={path}",
        plugin_executable="plugin",
        plugin_actions={"list": "--list", "install": "--install", "remove": "--remove"},
    ),
    ProductLine(
        min_major=2,
        archive_template="elasticsearch-{version}.tar.gz",
        config_flag_template="--path.conf={path}",
        plugin_executable="plugin",
        plugin_actions=_SUBCOMMAND_ACTIONS,
    ),
    ProductLine(
        min_major=5,
        archive_template="elasticsearch-{version}.tar.gz",
        config_flag_template="-Epath.conf={path}",
        plugin_executable="elasticsearch-plugin",
        plugin_actions=_SUBCOMMAND_ACTIONS,
    ),
    ProductLine(
        min_major=7,
        archive_template="elasticsearch-{version}-linux-x86_64.tar.gz",
        config_flag_template="-Epath.conf={path}",
        plugin_executable="elasticsearch-plugin",
        plugin_actions=_SUBCOMMAND_ACTIONS,
    ),
)


def get_product_line(major: int) -> ProductLine:
    """Returns the product line covering the given major version."""
    selected = PRODUCT_LINES[0]
    for line in PRODUCT_LINES:
        if major >= line.min_major:
            selected = line
    return selected
