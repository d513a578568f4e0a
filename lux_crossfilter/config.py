"""
Defaults for lux-crossfilter. Everything here can be overridden per controller
through constructor keyword arguments.
"""

import os

DEFAULT_PRIMARY_KEY = 'id'

# None means bitmasks widen without limit (Python ints are arbitrary precision).
DEFAULT_MAX_BITS = None

# Derived attribute written onto records holding the encoded bitmask.
BITMASK_ATTRIBUTE_PREFIX = '_bitmask_'

DEBUG_ENV_VAR = 'LUX_CROSSFILTER_DEBUG'


def debug_from_env() -> bool:
    """True if LUX_CROSSFILTER_DEBUG is set to a truthy value."""
    value = os.getenv(DEBUG_ENV_VAR, '')
    return value.strip().lower() in ('1', 'true', 'yes', 'on')
