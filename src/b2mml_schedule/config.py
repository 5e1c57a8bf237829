"""Serialiser configuration.

Example:
    from b2mml_schedule.config import SerialiserConfig

    config = SerialiserConfig(max_nesting_depth=16, pretty_print=True)
    xml_bytes = message.to_xml_bytes(config=config)

The process-wide default is read once from the ``B2MML_SERIALISER_CONFIG``
environment variable, a comma separated list of ``key=value`` pairs::

    B2MML_SERIALISER_CONFIG="max_nesting_depth=32,pretty_print=true"

Unknown keys are ignored with a warning.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import Any, Dict

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "B2MML_SERIALISER_CONFIG"


@dataclass
class SerialiserConfig:
    """Configuration for reading and writing schedule messages.

    Args:
        max_nesting_depth: Maximum depth of nested segment requirements and
            of nested assembly requirements accepted when decoding. Guards
            against hostile documents exhausting the interpreter stack.
        release_id: Value written to the ``releaseID`` attribute of the
            document root.
        pretty_print: Indent the emitted XML.
        xml_declaration: Emit the ``<?xml ...?>`` declaration.
    """

    max_nesting_depth: int = 64
    release_id: str = "1"
    pretty_print: bool = False
    xml_declaration: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def parse_config_string(config_str: str) -> SerialiserConfig:
    """Build a :class:`SerialiserConfig` from ``key=value,...`` text."""
    config = SerialiserConfig()
    for pair in config_str.split(","):
        if "=" not in pair:
            continue
        key, value = pair.split("=", 1)
        key = key.strip()
        value = value.strip()
        if not hasattr(config, key):
            logger.warning("Ignoring unknown serialiser setting '%s'", key)
            continue
        if key.startswith("max_"):
            setattr(config, key, int(value))
        elif key == "release_id":
            setattr(config, key, value)
        else:
            setattr(config, key, value.lower() == "true")
    return config


@lru_cache(maxsize=1)
def get_config() -> SerialiserConfig:
    """Return the process-wide configuration (environment driven)."""
    return parse_config_string(os.getenv(CONFIG_ENV_VAR, ""))
