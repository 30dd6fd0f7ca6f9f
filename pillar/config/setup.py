from enum import Enum
from typing import Any

from cachetools import cached

from pillar.config.logger import logging_setup


@cached(cache={})
def setup():
    """
    One-time setup of logging and library configs. Idempotent.
    """

    logging_setup()

    lib_setup()


def lib_setup():
    from frontmatter_format.yaml_util import add_default_yaml_customizer
    from ruamel.yaml import Representer

    def represent_enum(dumper: Representer, data: Enum) -> Any:
        """
        Represent Enums as their values, so header dicts holding a `Status` or
        `Priority` serialize as readable strings.
        """
        return dumper.represent_str(data.value)

    add_default_yaml_customizer(
        lambda yaml: yaml.representer.add_multi_representer(Enum, represent_enum)
    )
