"""
Exceptions raised by lux-crossfilter.
"""


class CrossfilterError(Exception):
    pass


class ConfigurationError(CrossfilterError):
    """The filter map, sort spec or predicates are incomplete or inconsistent."""


class UnknownFilterError(ConfigurationError, KeyError):
    """A filter key that is not present in the filter map."""

    def __init__(self, key):
        super().__init__(key)
        self.key = key

    def __str__(self):
        return f'Dimension with key "{self.key}" is not defined.'


class BitmaskCapacityError(CrossfilterError):
    pass
