"""
Typed accessor over a parsed configuration.

**Conceptual**: AbstractConfig pairs a ConfigDef with the raw values supplied by
the operator ("originals"). It parses everything once at construction, so every
getter returns a value that is already type-checked, range-checked and
default-substituted. Anything that consumes configuration (for example
ShareGroupConfig.from_config) only ever talks to this accessor.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Protocol

from sharegroup.config.definition import ConfigDef, ConfigException, Type

logger = logging.getLogger(__name__)


class ConfigAccessor(Protocol):
    """
    Read-only, typed view of configuration values.

    Any object with these three getters can feed a configuration loader; tests
    can pass a small fake instead of a full AbstractConfig.
    """

    def get_boolean(self, key: str) -> bool:
        ...

    def get_int(self, key: str) -> int:
        ...

    def get_short(self, key: str) -> int:
        ...


class AbstractConfig:
    """
    Parsed configuration values for one ConfigDef.

    Args:
        definition: Keys, types, defaults and validators.
        originals: Raw key/value pairs as supplied (strings, ints or bools).
                   Keys not in the definition are kept but logged as unknown.
        do_log: Log the resolved values at INFO after parsing.

    Raises:
        ConfigException: If any value is malformed, out of range, or a required
                         key is missing.
    """

    def __init__(self, definition: ConfigDef, originals: Optional[Mapping[str, Any]] = None, do_log: bool = True):
        self._definition = definition
        self._originals: Dict[str, Any] = dict(originals or {})
        self._values = definition.parse(self._originals)

        for name in self._originals:
            if name not in definition:
                logger.warning("The configuration '%s' was supplied but isn't a known config.", name)

        if do_log:
            self.log_all()

    def _get(self, key: str, expected: Type) -> Any:
        if key not in self._values:
            raise ConfigException(f"Unknown configuration '{key}'")
        declared = self._definition[key].type
        if declared is not expected:
            raise ConfigException(
                f"Configuration '{key}' is of type {declared.value}, not {expected.value}"
            )
        return self._values[key]

    def get_boolean(self, key: str) -> bool:
        return self._get(key, Type.BOOLEAN)

    def get_int(self, key: str) -> int:
        return self._get(key, Type.INT)

    def get_short(self, key: str) -> int:
        return self._get(key, Type.SHORT)

    def originals(self) -> Dict[str, Any]:
        return dict(self._originals)

    def values(self) -> Dict[str, Any]:
        return dict(self._values)

    def log_all(self) -> None:
        lines = [f"\t{name} = {self._values[name]}" for name in sorted(self._values)]
        logger.info("%s values:\n%s", type(self).__name__, "\n".join(lines))
