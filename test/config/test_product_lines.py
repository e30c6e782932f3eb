import pytest

from evm.config.product_lines import PRODUCT_LINES, get_product_line


@pytest.mark.parametrize(
    "major, flag",
    [
        (0, "-Des.path.conf=/etc/es"),
        (1, "-Des.path.conf=/etc/es"),
        (2, "--path.conf=/etc/es"),
        (5, "-Epath.conf=/etc/es"),
        (6, "-Epath.conf=/etc/es"),
        (8, "-Epath.conf=/etc/es"),
    ],
)
def test_config_flag(major, flag):
    assert get_product_line(major).config_flag("/etc/es") == flag


@pytest.mark.parametrize(
    "major, executable, install",
    [
        (1, "plugin", "--install"),
        (2, "plugin", "install"),
        (5, "elasticsearch-plugin", "install"),
        (7, "elasticsearch-plugin", "install"),
    ],
)
def test_plugin_tool(major, executable, install):
    line = get_product_line(major)
    assert line.plugin_executable == executable
    assert line.plugin_actions["install"] == install


def test_every_line_spells_every_action():
    for line in PRODUCT_LINES:
        assert set(line.plugin_actions) == {"list", "install", "remove"}


def test_lines_are_ordered():
    majors = [line.min_major for line in PRODUCT_LINES]
    assert majors == sorted(majors)
