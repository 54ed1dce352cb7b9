"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Config validation (validators)
    - Atomic I/O, image and YAML files (fs)
    - Hashing for split manifests (hashing)
    - Unified logging (logging_config)

No module in utils/ may import from upper layers (nbt, paint, cli).

Convenience imports:
    from jop_paint.utils import fs, validators
    from jop_paint.utils.logging_config import setup_logging, get_logger
"""

from . import fs
from . import hashing
from . import logging_config
from . import validators

from .logging_config import get_logger, push_context, setup_logging

__all__ = [
    # Modules
    'fs',
    'hashing',
    'logging_config',
    'validators',
    # Direct exports
    'setup_logging',
    'get_logger',
    'push_context',
]
