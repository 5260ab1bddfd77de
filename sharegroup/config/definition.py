"""
Configuration definitions: key metadata, type parsing and range validation.

**Conceptual**: A ConfigDef is a registry of ConfigKey descriptors. Each
descriptor records everything needed to turn an untyped value (usually a string
from the environment or the command line) into a typed, range-checked value,
and to render documentation for operators.

**Functionally**:
  - define()/define_internal() register keys (chainable, names must be unique).
  - parse() converts a mapping of raw values into typed values, substitutes
    defaults and runs per-key validators.
  - to_frame()/to_rst()/to_html() render documentation for the public keys.

Failures raise ConfigException with the offending key name and value so the
process can abort at startup with an actionable message.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

INT_MIN, INT_MAX = -(2 ** 31), 2 ** 31 - 1
SHORT_MIN, SHORT_MAX = -(2 ** 15), 2 ** 15 - 1

DOC_COLUMNS = ['name', 'description', 'type', 'default', 'valid_values', 'importance']

# Plain ASCII decimal, optionally signed
DECIMAL_PATTERN = re.compile(r"^[+-]?[0-9]+$")


class ConfigException(ValueError):
    """
    Raised when a configuration value is missing, malformed or inconsistent.

    Can be built either from a plain message or from a (name, value, message)
    triple, in which case the message reads
    "Invalid value <value> for configuration <name>: <message>".
    """

    def __init__(self, name: str, value: Any = None, message: Optional[str] = None):
        if value is None and message is None:
            # Single-argument form: name is the whole message
            super().__init__(name)
        else:
            text = f"Invalid value {value} for configuration {name}"
            if message:
                text += f": {message}"
            super().__init__(text)
        self.name = name
        self.value = value


class Type(Enum):
    """Value types understood by ConfigDef.parse."""
    BOOLEAN = 'boolean'
    INT = 'int'
    SHORT = 'short'


class Importance(Enum):
    """Documentation-only importance tag, ordered HIGH first."""
    HIGH = 0
    MEDIUM = 1
    LOW = 2


class _NoDefault:
    def __repr__(self):
        return 'NO_DEFAULT'


# Marker for keys the caller must always supply
NO_DEFAULT = _NoDefault()


@dataclass(frozen=True)
class Range:
    """
    Inclusive numeric bound validator.

    Build with Range.between(lo, hi) or Range.at_least(lo); either bound may be
    None for an open end.
    """
    min: Optional[int] = None
    max: Optional[int] = None

    @classmethod
    def between(cls, min_value: int, max_value: int) -> "Range":
        return cls(min=min_value, max=max_value)

    @classmethod
    def at_least(cls, min_value: int) -> "Range":
        return cls(min=min_value)

    def ensure_valid(self, name: str, value: Any) -> None:
        """
        Raise ConfigException if value falls outside the bounds.

        Args:
            name: Configuration key, used in the error message.
            value: Already-parsed value. None is rejected.
        """
        if value is None:
            raise ConfigException(name, None, "Value must be non-null")
        if self.min is not None and value < self.min:
            raise ConfigException(name, value, f"Value must be at least {self.min}")
        if self.max is not None and value > self.max:
            raise ConfigException(name, value, f"Value must be no more than {self.max}")

    def __str__(self):
        if self.min is None and self.max is None:
            return '[...]'
        if self.min is None:
            return f'[...,{self.max}]'
        if self.max is None:
            return f'[{self.min},...]'
        return f'[{self.min},...,{self.max}]'


@dataclass(frozen=True)
class ConfigKey:
    """
    Metadata for one configuration key.

    Attributes:
        name: Wire name, unique within a ConfigDef (e.g. "group.share.max.size").
        type: Value type used to parse raw input.
        default: Parsed default value, or NO_DEFAULT when the key is required.
        validator: Optional Range the parsed value must satisfy.
        importance: Documentation-only importance tag.
        documentation: Human-readable description, rendered verbatim.
        internal: Internal keys are parsed like any other key but are left out
                  of every documentation surface.
    """
    name: str
    type: Type
    default: Any
    validator: Optional[Range]
    importance: Importance
    documentation: str
    internal: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT


def parse_type(name: str, value: Any, type_: Type) -> Any:
    """
    Convert a raw value into the Python value for a configuration type.

    **Functionally**:
      - BOOLEAN accepts bool, or the strings "true"/"false" (case-insensitive,
        surrounding whitespace ignored).
      - INT and SHORT accept int (but not bool) or a decimal string; the result
        must fit in 32 or 16 signed bits respectively.

    Args:
        name: Configuration key, used in error messages.
        value: Raw value (str, bool or int).
        type_: Target type.

    Returns:
        Parsed value.

    Raises:
        ConfigException: If the value cannot be represented as type_.
    """
    if value is None:
        return None

    if type_ is Type.BOOLEAN:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            trimmed = value.strip().lower()
            if trimmed == 'true':
                return True
            if trimmed == 'false':
                return False
            raise ConfigException(name, value, "Expected value to be either true or false")
        raise ConfigException(name, value, "Expected value to be either true or false")

    if type_ in (Type.INT, Type.SHORT):
        bits, lo, hi = (32, INT_MIN, INT_MAX) if type_ is Type.INT else (16, SHORT_MIN, SHORT_MAX)
        if isinstance(value, bool):
            raise ConfigException(
                name, value, f"Expected value to be a {bits}-bit integer, but it was a bool"
            )
        if isinstance(value, int):
            parsed = value
        elif isinstance(value, str):
            trimmed = value.strip()
            if not DECIMAL_PATTERN.match(trimmed):
                raise ConfigException(name, value, f"Not a number of type {type_.name}")
            parsed = int(trimmed)
        else:
            raise ConfigException(
                name, value,
                f"Expected value to be a {bits}-bit integer, but it was a {type(value).__name__}"
            )
        if parsed < lo or parsed > hi:
            raise ConfigException(name, value, f"Not a number of type {type_.name}")
        return parsed

    raise ConfigException(name, value, f"Unknown type {type_}")


class ConfigDef:
    """
    Registry of configuration keys.

    **Usage example**:
        >>> definition = (
        ...     ConfigDef()
        ...     .define('group.share.max.groups', Type.SHORT, 10,
        ...             Range.between(1, 100), Importance.MEDIUM, 'The maximum number of share groups.')
        ... )
        >>> definition.parse({'group.share.max.groups': '20'})
        {'group.share.max.groups': 20}
    """

    def __init__(self):
        self._keys: Dict[str, ConfigKey] = {}

    def define(
        self,
        name: str,
        type_: Type,
        default: Any,
        validator: Optional[Range],
        importance: Importance,
        documentation: str,
        internal: bool = False,
    ) -> "ConfigDef":
        """
        Register a key and return self so calls can be chained.

        The default is parsed and validated immediately, so an inconsistent
        declaration fails at import time rather than at first use.

        Raises:
            ConfigException: If the name is already defined or the default is
                             invalid for the declared type or range.
        """
        if name in self._keys:
            raise ConfigException(f"Configuration {name} is defined twice.")

        parsed_default = default
        if default is not NO_DEFAULT:
            parsed_default = parse_type(name, default, type_)
            if validator is not None:
                validator.ensure_valid(name, parsed_default)

        self._keys[name] = ConfigKey(
            name=name,
            type=type_,
            default=parsed_default,
            validator=validator,
            importance=importance,
            documentation=documentation,
            internal=internal,
        )
        return self

    def define_internal(
        self,
        name: str,
        type_: Type,
        default: Any,
        validator: Optional[Range],
        importance: Importance,
        documentation: str,
    ) -> "ConfigDef":
        """Register a key that is excluded from generated documentation."""
        return self.define(name, type_, default, validator, importance, documentation, internal=True)

    def names(self) -> List[str]:
        return list(self._keys)

    def config_keys(self) -> Dict[str, ConfigKey]:
        return dict(self._keys)

    def default_values(self) -> Dict[str, Any]:
        return {name: key.default for name, key in self._keys.items() if key.has_default}

    def __contains__(self, name: str) -> bool:
        return name in self._keys

    def __getitem__(self, name: str) -> ConfigKey:
        return self._keys[name]

    def parse(self, props: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Parse and validate raw values for every defined key.

        **Functionally**:
          - For each defined key, take props[name] if present and not None,
            otherwise the default. A key with no default that is absent from props is an error.
          - Parse the value to the declared type and run its validator.
          - Keys in props that are not defined are ignored here; callers decide
            whether to warn about them.

        Args:
            props: Mapping of key name to raw value (strings, bools or ints).

        Returns:
            Dict mapping every defined key to its typed value.

        Raises:
            ConfigException: On the first missing, malformed or out-of-range value.
        """
        values: Dict[str, Any] = {}
        for name, key in self._keys.items():
            if props.get(name) is not None:
                value = parse_type(name, props[name], key.type)
            elif key.has_default:
                value = key.default
            else:
                raise ConfigException(
                    f'Missing required configuration "{name}" which has no default value.'
                )
            if key.validator is not None:
                key.validator.ensure_valid(name, value)
            values[name] = value
        return values

    def _documented_keys(self) -> List[ConfigKey]:
        public = [key for key in self._keys.values() if not key.internal]
        # Required keys first, then by importance, then alphabetically
        return sorted(public, key=lambda k: (k.has_default, k.importance.value, k.name))

    @staticmethod
    def _render_default(key: ConfigKey) -> str:
        if not key.has_default:
            return ''
        if isinstance(key.default, bool):
            return 'true' if key.default else 'false'
        return str(key.default)

    def to_frame(self) -> pd.DataFrame:
        """
        Documentation table for all public keys.

        Returns:
            DataFrame with columns name, description, type, default,
            valid_values and importance; one row per non-internal key.
        """
        rows = [
            {
                'name': key.name,
                'description': key.documentation,
                'type': key.type.value,
                'default': self._render_default(key),
                'valid_values': str(key.validator) if key.validator is not None else '',
                'importance': key.importance.name.lower(),
            }
            for key in self._documented_keys()
        ]
        return pd.DataFrame(rows, columns=DOC_COLUMNS)

    def to_html(self) -> str:
        frame = self.to_frame().rename(columns={
            'name': 'Name',
            'description': 'Description',
            'type': 'Type',
            'default': 'Default',
            'valid_values': 'Valid Values',
            'importance': 'Importance',
        })
        return frame.to_html(index=False)

    def to_rst(self) -> str:
        """Render public keys as reStructuredText definition blocks."""
        lines: List[str] = []
        for row in self.to_frame().itertuples(index=False):
            lines.append(f'``{row.name}``')
            lines.append(f'  {row.description}')
            lines.append('')
            lines.append(f'  * Type: {row.type}')
            if row.default:
                lines.append(f'  * Default: {row.default}')
            if row.valid_values:
                lines.append(f'  * Valid Values: {row.valid_values}')
            lines.append(f'  * Importance: {row.importance}')
            lines.append('')
        return '\n'.join(lines)
