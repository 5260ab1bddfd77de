"""
Share group configuration: key schema, typed loader and cross-field validation.

**Conceptual**: Share groups have three families of related settings
(heartbeat interval, session timeout, record lock duration), each made of a
value plus the min/max bounds members may negotiate within. Each key has its
own per-key range in CONFIG_DEF, but whether value/min/max agree with each
other can only be checked once all of them are known. ShareGroupConfig does
that check when it is constructed, so no inconsistent instance ever exists.

**Lifecycle**:
  1. CONFIG_DEF is built once at import time.
  2. An accessor (AbstractConfig over CONFIG_DEF) parses raw values, applies
     defaults and rejects single-key range violations.
  3. ShareGroupConfig.from_config() copies the typed values into a frozen
     dataclass and runs the ordering checks in __post_init__.

Usage example:
    >>> from sharegroup.config.share_group_config import ShareGroupConfig
    >>> config = ShareGroupConfig.from_props({'group.share.max.groups': '20'})
    >>> config.share_group_max_groups
    20
"""

import logging
import operator
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from sharegroup.config.abstract_config import AbstractConfig, ConfigAccessor
from sharegroup.config.definition import ConfigDef, ConfigException, Importance, Range, Type

logger = logging.getLogger(__name__)


# Internal configuration used by integration and system tests.
SHARE_GROUP_ENABLE_CONFIG = 'group.share.enable'
SHARE_GROUP_ENABLE_DEFAULT = False
SHARE_GROUP_ENABLE_DOC = 'Enable share groups on the broker.'

SHARE_GROUP_PARTITION_MAX_RECORD_LOCKS_CONFIG = 'group.share.partition.max.record.locks'
SHARE_GROUP_PARTITION_MAX_RECORD_LOCKS_DEFAULT = 200
SHARE_GROUP_PARTITION_MAX_RECORD_LOCKS_DOC = 'Share-group record lock limit per share-partition.'

SHARE_GROUP_DELIVERY_COUNT_LIMIT_CONFIG = 'group.share.delivery.count.limit'
SHARE_GROUP_DELIVERY_COUNT_LIMIT_DEFAULT = 5
SHARE_GROUP_DELIVERY_COUNT_LIMIT_DOC = (
    'The maximum number of delivery attempts for a record delivered to a share group.'
)

SHARE_GROUP_MAX_GROUPS_CONFIG = 'group.share.max.groups'
SHARE_GROUP_MAX_GROUPS_DEFAULT = 10
SHARE_GROUP_MAX_GROUPS_DOC = 'The maximum number of share groups.'

SHARE_GROUP_MAX_SIZE_CONFIG = 'group.share.max.size'
SHARE_GROUP_MAX_SIZE_DEFAULT = 200
SHARE_GROUP_MAX_SIZE_DOC = 'The maximum number of consumers that a single share group can accommodate.'

SHARE_GROUP_SESSION_TIMEOUT_MS_CONFIG = 'group.share.session.timeout.ms'
SHARE_GROUP_SESSION_TIMEOUT_MS_DEFAULT = 45000
SHARE_GROUP_SESSION_TIMEOUT_MS_DOC = 'The timeout to detect client failures when using the share group protocol.'

SHARE_GROUP_MIN_SESSION_TIMEOUT_MS_CONFIG = 'group.share.min.session.timeout.ms'
SHARE_GROUP_MIN_SESSION_TIMEOUT_MS_DEFAULT = 45000
SHARE_GROUP_MIN_SESSION_TIMEOUT_MS_DOC = 'The minimum allowed session timeout for share group members.'

SHARE_GROUP_MAX_SESSION_TIMEOUT_MS_CONFIG = 'group.share.max.session.timeout.ms'
SHARE_GROUP_MAX_SESSION_TIMEOUT_MS_DEFAULT = 60000
SHARE_GROUP_MAX_SESSION_TIMEOUT_MS_DOC = 'The maximum allowed session timeout for share group members.'

SHARE_GROUP_HEARTBEAT_INTERVAL_MS_CONFIG = 'group.share.heartbeat.interval.ms'
SHARE_GROUP_HEARTBEAT_INTERVAL_MS_DEFAULT = 5000
SHARE_GROUP_HEARTBEAT_INTERVAL_MS_DOC = 'The heartbeat interval given to the members of a share group.'

SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_CONFIG = 'group.share.min.heartbeat.interval.ms'
SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_DEFAULT = 5000
SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_DOC = 'The minimum heartbeat interval for share group members.'

SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_CONFIG = 'group.share.max.heartbeat.interval.ms'
SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_DEFAULT = 15000
SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_DOC = 'The maximum heartbeat interval for share group members.'

SHARE_GROUP_RECORD_LOCK_DURATION_MS_CONFIG = 'group.share.record.lock.duration.ms'
SHARE_GROUP_RECORD_LOCK_DURATION_MS_DEFAULT = 30000
SHARE_GROUP_RECORD_LOCK_DURATION_MS_DOC = 'The record acquisition lock duration in milliseconds for share groups.'

SHARE_GROUP_MIN_RECORD_LOCK_DURATION_MS_CONFIG = 'group.share.min.record.lock.duration.ms'
SHARE_GROUP_MIN_RECORD_LOCK_DURATION_MS_DEFAULT = 15000
SHARE_GROUP_MIN_RECORD_LOCK_DURATION_MS_DOC = (
    'The record acquisition lock minimum duration in milliseconds for share groups.'
)

SHARE_GROUP_MAX_RECORD_LOCK_DURATION_MS_CONFIG = 'group.share.max.record.lock.duration.ms'
SHARE_GROUP_MAX_RECORD_LOCK_DURATION_MS_DEFAULT = 60000
SHARE_GROUP_MAX_RECORD_LOCK_DURATION_MS_DOC = (
    'The record acquisition lock maximum duration in milliseconds for share groups.'
)


CONFIG_DEF = (
    ConfigDef()
    .define_internal(SHARE_GROUP_ENABLE_CONFIG, Type.BOOLEAN, SHARE_GROUP_ENABLE_DEFAULT,
                     None, Importance.MEDIUM, SHARE_GROUP_ENABLE_DOC)
    .define(SHARE_GROUP_DELIVERY_COUNT_LIMIT_CONFIG, Type.INT, SHARE_GROUP_DELIVERY_COUNT_LIMIT_DEFAULT,
            Range.between(2, 10), Importance.MEDIUM, SHARE_GROUP_DELIVERY_COUNT_LIMIT_DOC)
    .define(SHARE_GROUP_RECORD_LOCK_DURATION_MS_CONFIG, Type.INT, SHARE_GROUP_RECORD_LOCK_DURATION_MS_DEFAULT,
            Range.between(1000, 60000), Importance.MEDIUM, SHARE_GROUP_RECORD_LOCK_DURATION_MS_DOC)
    .define(SHARE_GROUP_MIN_RECORD_LOCK_DURATION_MS_CONFIG, Type.INT, SHARE_GROUP_MIN_RECORD_LOCK_DURATION_MS_DEFAULT,
            Range.between(1000, 30000), Importance.MEDIUM, SHARE_GROUP_MIN_RECORD_LOCK_DURATION_MS_DOC)
    .define(SHARE_GROUP_MAX_RECORD_LOCK_DURATION_MS_CONFIG, Type.INT, SHARE_GROUP_MAX_RECORD_LOCK_DURATION_MS_DEFAULT,
            Range.between(30000, 3600000), Importance.MEDIUM, SHARE_GROUP_MAX_RECORD_LOCK_DURATION_MS_DOC)
    .define(SHARE_GROUP_PARTITION_MAX_RECORD_LOCKS_CONFIG, Type.INT, SHARE_GROUP_PARTITION_MAX_RECORD_LOCKS_DEFAULT,
            Range.between(100, 10000), Importance.MEDIUM, SHARE_GROUP_PARTITION_MAX_RECORD_LOCKS_DOC)
    .define(SHARE_GROUP_SESSION_TIMEOUT_MS_CONFIG, Type.INT, SHARE_GROUP_SESSION_TIMEOUT_MS_DEFAULT,
            Range.at_least(1), Importance.MEDIUM, SHARE_GROUP_SESSION_TIMEOUT_MS_DOC)
    .define(SHARE_GROUP_MIN_SESSION_TIMEOUT_MS_CONFIG, Type.INT, SHARE_GROUP_MIN_SESSION_TIMEOUT_MS_DEFAULT,
            Range.at_least(1), Importance.MEDIUM, SHARE_GROUP_MIN_SESSION_TIMEOUT_MS_DOC)
    .define(SHARE_GROUP_MAX_SESSION_TIMEOUT_MS_CONFIG, Type.INT, SHARE_GROUP_MAX_SESSION_TIMEOUT_MS_DEFAULT,
            Range.at_least(1), Importance.MEDIUM, SHARE_GROUP_MAX_SESSION_TIMEOUT_MS_DOC)
    .define(SHARE_GROUP_HEARTBEAT_INTERVAL_MS_CONFIG, Type.INT, SHARE_GROUP_HEARTBEAT_INTERVAL_MS_DEFAULT,
            Range.at_least(1), Importance.MEDIUM, SHARE_GROUP_HEARTBEAT_INTERVAL_MS_DOC)
    .define(SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_CONFIG, Type.INT, SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_DEFAULT,
            Range.at_least(1), Importance.MEDIUM, SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_DOC)
    .define(SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_CONFIG, Type.INT, SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_DEFAULT,
            Range.at_least(1), Importance.MEDIUM, SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_DOC)
    .define(SHARE_GROUP_MAX_GROUPS_CONFIG, Type.SHORT, SHARE_GROUP_MAX_GROUPS_DEFAULT,
            Range.between(1, 100), Importance.MEDIUM, SHARE_GROUP_MAX_GROUPS_DOC)
    .define(SHARE_GROUP_MAX_SIZE_CONFIG, Type.SHORT, SHARE_GROUP_MAX_SIZE_DEFAULT,
            Range.between(10, 1000), Importance.MEDIUM, SHARE_GROUP_MAX_SIZE_DOC)
)


class Relation(Enum):
    """Required relation between two configuration values."""
    GREATER_OR_EQUAL = ('greater than or equals to', operator.ge)
    LESS_OR_EQUAL = ('less than or equals to', operator.le)

    def __init__(self, text: str, compare: Callable[[int, int], bool]):
        self.text = text
        self.compare = compare


class ConfigOrderingError(ConfigException):
    """
    Raised when two related share group settings are out of order.

    Attributes:
        key: Configuration key on the left-hand side of the relation.
        relation: The relation that failed to hold.
        other_key: Configuration key on the right-hand side.
    """

    def __init__(self, key: str, relation: Relation, other_key: str):
        super().__init__(f"{key} must be {relation.text} {other_key}")
        self.name = key
        self.key = key
        self.relation = relation
        self.other_key = other_key


@dataclass(frozen=True)
class OrderingRule:
    """One "<key> <relation> <other_key>" check between two configured values."""
    key: str
    relation: Relation
    other_key: str

    def check(self, values: Mapping[str, int]) -> None:
        if not self.relation.compare(values[self.key], values[self.other_key]):
            raise ConfigOrderingError(self.key, self.relation, self.other_key)


# Evaluated in order; the first failure is the one reported.
ORDERING_RULES: Tuple[OrderingRule, ...] = (
    OrderingRule(SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_CONFIG, Relation.GREATER_OR_EQUAL,
                 SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_CONFIG),
    OrderingRule(SHARE_GROUP_HEARTBEAT_INTERVAL_MS_CONFIG, Relation.GREATER_OR_EQUAL,
                 SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_CONFIG),
    OrderingRule(SHARE_GROUP_HEARTBEAT_INTERVAL_MS_CONFIG, Relation.LESS_OR_EQUAL,
                 SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_CONFIG),

    OrderingRule(SHARE_GROUP_MAX_SESSION_TIMEOUT_MS_CONFIG, Relation.GREATER_OR_EQUAL,
                 SHARE_GROUP_MIN_SESSION_TIMEOUT_MS_CONFIG),
    OrderingRule(SHARE_GROUP_SESSION_TIMEOUT_MS_CONFIG, Relation.GREATER_OR_EQUAL,
                 SHARE_GROUP_MIN_SESSION_TIMEOUT_MS_CONFIG),
    OrderingRule(SHARE_GROUP_SESSION_TIMEOUT_MS_CONFIG, Relation.LESS_OR_EQUAL,
                 SHARE_GROUP_MAX_SESSION_TIMEOUT_MS_CONFIG),

    OrderingRule(SHARE_GROUP_RECORD_LOCK_DURATION_MS_CONFIG, Relation.GREATER_OR_EQUAL,
                 SHARE_GROUP_MIN_RECORD_LOCK_DURATION_MS_CONFIG),
    OrderingRule(SHARE_GROUP_MAX_RECORD_LOCK_DURATION_MS_CONFIG, Relation.GREATER_OR_EQUAL,
                 SHARE_GROUP_RECORD_LOCK_DURATION_MS_CONFIG),
)


@dataclass(frozen=True)
class ShareGroupConfig:
    """
    Resolved, validated share group settings.

    **Conceptual**: One instance per process. It is built at startup from an
    accessor whose values already passed per-key checks, validated once in
    __post_init__, and never changes afterwards, so it can be shared across
    threads without locking.

    Attributes mirror the configuration keys (see FIELD_KEYS for the mapping),
    named after the concept they configure.

    Raises:
        ConfigOrderingError: On construction, if any ORDERING_RULES check fails.
    """
    is_share_group_enabled: bool = SHARE_GROUP_ENABLE_DEFAULT
    share_group_partition_max_record_locks: int = SHARE_GROUP_PARTITION_MAX_RECORD_LOCKS_DEFAULT
    share_group_delivery_count_limit: int = SHARE_GROUP_DELIVERY_COUNT_LIMIT_DEFAULT
    share_group_max_groups: int = SHARE_GROUP_MAX_GROUPS_DEFAULT
    share_group_max_size: int = SHARE_GROUP_MAX_SIZE_DEFAULT
    share_group_session_timeout_ms: int = SHARE_GROUP_SESSION_TIMEOUT_MS_DEFAULT
    share_group_min_session_timeout_ms: int = SHARE_GROUP_MIN_SESSION_TIMEOUT_MS_DEFAULT
    share_group_max_session_timeout_ms: int = SHARE_GROUP_MAX_SESSION_TIMEOUT_MS_DEFAULT
    share_group_heartbeat_interval_ms: int = SHARE_GROUP_HEARTBEAT_INTERVAL_MS_DEFAULT
    share_group_min_heartbeat_interval_ms: int = SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_DEFAULT
    share_group_max_heartbeat_interval_ms: int = SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_DEFAULT
    share_group_record_lock_duration_ms: int = SHARE_GROUP_RECORD_LOCK_DURATION_MS_DEFAULT
    share_group_min_record_lock_duration_ms: int = SHARE_GROUP_MIN_RECORD_LOCK_DURATION_MS_DEFAULT
    share_group_max_record_lock_duration_ms: int = SHARE_GROUP_MAX_RECORD_LOCK_DURATION_MS_DEFAULT

    def __post_init__(self):
        """Validate cross-field ordering after initialization."""
        self.validate()

    def validate(self) -> None:
        """
        Check every ORDERING_RULES entry in order, raising on the first failure.

        Raises:
            ConfigOrderingError: Names both keys and the required relation.
        """
        values = self.to_dict()
        for rule in ORDERING_RULES:
            rule.check(values)

    def to_dict(self) -> Dict[str, Any]:
        """Values keyed by configuration key name."""
        return {key: getattr(self, field) for field, key in FIELD_KEYS.items()}

    @classmethod
    def from_config(cls, config: ConfigAccessor) -> "ShareGroupConfig":
        """
        Extract share group settings from a typed accessor.

        The accessor is trusted to have applied defaults and per-key ranges
        already; only the cross-field ordering is checked here.

        Args:
            config: Anything with get_boolean/get_int/get_short, typically an
                    AbstractConfig over CONFIG_DEF.

        Returns:
            Validated ShareGroupConfig.

        Raises:
            ConfigOrderingError: If related settings are out of order.
        """
        return cls(
            is_share_group_enabled=config.get_boolean(SHARE_GROUP_ENABLE_CONFIG),
            share_group_partition_max_record_locks=config.get_int(SHARE_GROUP_PARTITION_MAX_RECORD_LOCKS_CONFIG),
            share_group_delivery_count_limit=config.get_int(SHARE_GROUP_DELIVERY_COUNT_LIMIT_CONFIG),
            share_group_max_groups=config.get_short(SHARE_GROUP_MAX_GROUPS_CONFIG),
            share_group_max_size=config.get_short(SHARE_GROUP_MAX_SIZE_CONFIG),
            share_group_session_timeout_ms=config.get_int(SHARE_GROUP_SESSION_TIMEOUT_MS_CONFIG),
            share_group_min_session_timeout_ms=config.get_int(SHARE_GROUP_MIN_SESSION_TIMEOUT_MS_CONFIG),
            share_group_max_session_timeout_ms=config.get_int(SHARE_GROUP_MAX_SESSION_TIMEOUT_MS_CONFIG),
            share_group_heartbeat_interval_ms=config.get_int(SHARE_GROUP_HEARTBEAT_INTERVAL_MS_CONFIG),
            share_group_min_heartbeat_interval_ms=config.get_int(SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_CONFIG),
            share_group_max_heartbeat_interval_ms=config.get_int(SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_CONFIG),
            share_group_record_lock_duration_ms=config.get_int(SHARE_GROUP_RECORD_LOCK_DURATION_MS_CONFIG),
            share_group_min_record_lock_duration_ms=config.get_int(SHARE_GROUP_MIN_RECORD_LOCK_DURATION_MS_CONFIG),
            share_group_max_record_lock_duration_ms=config.get_int(SHARE_GROUP_MAX_RECORD_LOCK_DURATION_MS_CONFIG),
        )

    @classmethod
    def from_props(cls, props: Optional[Mapping[str, Any]] = None) -> "ShareGroupConfig":
        """Parse raw key/value pairs against CONFIG_DEF, then load and validate."""
        config = cls.from_config(AbstractConfig(CONFIG_DEF, props or {}))
        logger.debug("Share group configuration loaded (enabled=%s)", config.is_share_group_enabled)
        return config


FIELD_KEYS: Dict[str, str] = {
    'is_share_group_enabled': SHARE_GROUP_ENABLE_CONFIG,
    'share_group_partition_max_record_locks': SHARE_GROUP_PARTITION_MAX_RECORD_LOCKS_CONFIG,
    'share_group_delivery_count_limit': SHARE_GROUP_DELIVERY_COUNT_LIMIT_CONFIG,
    'share_group_max_groups': SHARE_GROUP_MAX_GROUPS_CONFIG,
    'share_group_max_size': SHARE_GROUP_MAX_SIZE_CONFIG,
    'share_group_session_timeout_ms': SHARE_GROUP_SESSION_TIMEOUT_MS_CONFIG,
    'share_group_min_session_timeout_ms': SHARE_GROUP_MIN_SESSION_TIMEOUT_MS_CONFIG,
    'share_group_max_session_timeout_ms': SHARE_GROUP_MAX_SESSION_TIMEOUT_MS_CONFIG,
    'share_group_heartbeat_interval_ms': SHARE_GROUP_HEARTBEAT_INTERVAL_MS_CONFIG,
    'share_group_min_heartbeat_interval_ms': SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_CONFIG,
    'share_group_max_heartbeat_interval_ms': SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_CONFIG,
    'share_group_record_lock_duration_ms': SHARE_GROUP_RECORD_LOCK_DURATION_MS_CONFIG,
    'share_group_min_record_lock_duration_ms': SHARE_GROUP_MIN_RECORD_LOCK_DURATION_MS_CONFIG,
    'share_group_max_record_lock_duration_ms': SHARE_GROUP_MAX_RECORD_LOCK_DURATION_MS_CONFIG,
}
