"""Bitmask-smoothing icon sheet generator.

Cuts corner pieces out of a few authored blocks and assembles every
adjacency junction from them.
"""

from bitslice.config import SliceConfig, load_config, parse_config
from bitslice.errors import BitsliceError, CompositionError, ConfigError, SourceBoundsError
from bitslice.pipeline import IconSheet, generate

__version__ = "0.1.0"

__all__ = [
    "BitsliceError",
    "CompositionError",
    "ConfigError",
    "IconSheet",
    "SliceConfig",
    "SourceBoundsError",
    "generate",
    "load_config",
    "parse_config",
]
