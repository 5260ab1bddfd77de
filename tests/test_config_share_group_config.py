"""
Tests for sharegroup/config/share_group_config.py

This module tests:
  - The key schema (names, types, defaults, ranges, internal flag).
  - Loading typed values through an accessor into ShareGroupConfig.
  - The eight cross-field ordering checks, their order and error details.
  - Boundary values at the per-key range edges.
"""

import dataclasses

import pytest

from sharegroup.config.definition import ConfigException, Importance, Range, Type
from sharegroup.config.share_group_config import (
    CONFIG_DEF,
    FIELD_KEYS,
    ORDERING_RULES,
    SHARE_GROUP_DELIVERY_COUNT_LIMIT_CONFIG,
    SHARE_GROUP_ENABLE_CONFIG,
    SHARE_GROUP_HEARTBEAT_INTERVAL_MS_CONFIG,
    SHARE_GROUP_MAX_GROUPS_CONFIG,
    SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_CONFIG,
    SHARE_GROUP_MAX_RECORD_LOCK_DURATION_MS_CONFIG,
    SHARE_GROUP_MAX_SESSION_TIMEOUT_MS_CONFIG,
    SHARE_GROUP_MAX_SIZE_CONFIG,
    SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_CONFIG,
    SHARE_GROUP_MIN_RECORD_LOCK_DURATION_MS_CONFIG,
    SHARE_GROUP_MIN_SESSION_TIMEOUT_MS_CONFIG,
    SHARE_GROUP_PARTITION_MAX_RECORD_LOCKS_CONFIG,
    SHARE_GROUP_RECORD_LOCK_DURATION_MS_CONFIG,
    SHARE_GROUP_SESSION_TIMEOUT_MS_CONFIG,
    ConfigOrderingError,
    Relation,
    ShareGroupConfig,
)


class FakeAccessor:
    """Minimal accessor backed by a dict; performs no range checks."""

    def __init__(self, values):
        self.values = values
        self.calls = []

    def _get(self, key):
        self.calls.append(key)
        return self.values[key]

    def get_boolean(self, key):
        return self._get(key)

    def get_int(self, key):
        return self._get(key)

    def get_short(self, key):
        return self._get(key)


# ============================================================================
# Schema
# ============================================================================

EXPECTED_SCHEMA = {
    SHARE_GROUP_ENABLE_CONFIG: (Type.BOOLEAN, False, None),
    SHARE_GROUP_PARTITION_MAX_RECORD_LOCKS_CONFIG: (Type.INT, 200, Range.between(100, 10000)),
    SHARE_GROUP_DELIVERY_COUNT_LIMIT_CONFIG: (Type.INT, 5, Range.between(2, 10)),
    SHARE_GROUP_MAX_GROUPS_CONFIG: (Type.SHORT, 10, Range.between(1, 100)),
    SHARE_GROUP_MAX_SIZE_CONFIG: (Type.SHORT, 200, Range.between(10, 1000)),
    SHARE_GROUP_SESSION_TIMEOUT_MS_CONFIG: (Type.INT, 45000, Range.at_least(1)),
    SHARE_GROUP_MIN_SESSION_TIMEOUT_MS_CONFIG: (Type.INT, 45000, Range.at_least(1)),
    SHARE_GROUP_MAX_SESSION_TIMEOUT_MS_CONFIG: (Type.INT, 60000, Range.at_least(1)),
    SHARE_GROUP_HEARTBEAT_INTERVAL_MS_CONFIG: (Type.INT, 5000, Range.at_least(1)),
    SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_CONFIG: (Type.INT, 5000, Range.at_least(1)),
    SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_CONFIG: (Type.INT, 15000, Range.at_least(1)),
    SHARE_GROUP_RECORD_LOCK_DURATION_MS_CONFIG: (Type.INT, 30000, Range.between(1000, 60000)),
    SHARE_GROUP_MIN_RECORD_LOCK_DURATION_MS_CONFIG: (Type.INT, 15000, Range.between(1000, 30000)),
    SHARE_GROUP_MAX_RECORD_LOCK_DURATION_MS_CONFIG: (Type.INT, 60000, Range.between(30000, 3600000)),
}


def test_schema_declares_every_key_exactly():
    keys = CONFIG_DEF.config_keys()
    assert set(keys) == set(EXPECTED_SCHEMA)

    for name, (type_, default, validator) in EXPECTED_SCHEMA.items():
        key = keys[name]
        assert key.type is type_, name
        assert key.default == default, name
        assert key.validator == validator, name
        assert key.importance is Importance.MEDIUM, name
        assert key.documentation, name


def test_only_enable_flag_is_internal():
    internal = [name for name, key in CONFIG_DEF.config_keys().items() if key.internal]
    assert internal == [SHARE_GROUP_ENABLE_CONFIG]


def test_field_keys_cover_dataclass_and_schema():
    assert set(FIELD_KEYS) == {f.name for f in dataclasses.fields(ShareGroupConfig)}
    assert set(FIELD_KEYS.values()) == set(CONFIG_DEF.names())


# ============================================================================
# Loading
# ============================================================================

def test_defaults_alone_construct_successfully():
    config = ShareGroupConfig.from_props()

    assert config.is_share_group_enabled is False
    assert config.share_group_partition_max_record_locks == 200
    assert config.share_group_delivery_count_limit == 5
    assert config.share_group_max_groups == 10
    assert config.share_group_max_size == 200
    assert config.share_group_session_timeout_ms == 45000
    assert config.share_group_min_session_timeout_ms == 45000
    assert config.share_group_max_session_timeout_ms == 60000
    assert config.share_group_heartbeat_interval_ms == 5000
    assert config.share_group_min_heartbeat_interval_ms == 5000
    assert config.share_group_max_heartbeat_interval_ms == 15000
    assert config.share_group_record_lock_duration_ms == 30000
    assert config.share_group_min_record_lock_duration_ms == 15000
    assert config.share_group_max_record_lock_duration_ms == 60000

    # Dataclass defaults and schema defaults agree
    assert config == ShareGroupConfig()
    assert config.to_dict() == CONFIG_DEF.default_values()


def test_valid_values_round_trip():
    props = {
        SHARE_GROUP_ENABLE_CONFIG: "true",
        SHARE_GROUP_PARTITION_MAX_RECORD_LOCKS_CONFIG: "500",
        SHARE_GROUP_DELIVERY_COUNT_LIMIT_CONFIG: "7",
        SHARE_GROUP_MAX_GROUPS_CONFIG: "50",
        SHARE_GROUP_MAX_SIZE_CONFIG: "300",
        SHARE_GROUP_SESSION_TIMEOUT_MS_CONFIG: "30000",
        SHARE_GROUP_MIN_SESSION_TIMEOUT_MS_CONFIG: "20000",
        SHARE_GROUP_MAX_SESSION_TIMEOUT_MS_CONFIG: "40000",
        SHARE_GROUP_HEARTBEAT_INTERVAL_MS_CONFIG: "3000",
        SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_CONFIG: "1000",
        SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_CONFIG: "6000",
        SHARE_GROUP_RECORD_LOCK_DURATION_MS_CONFIG: "20000",
        SHARE_GROUP_MIN_RECORD_LOCK_DURATION_MS_CONFIG: "10000",
        SHARE_GROUP_MAX_RECORD_LOCK_DURATION_MS_CONFIG: "120000",
    }
    config = ShareGroupConfig.from_props(props)

    expected = {key: int(value) for key, value in props.items() if key != SHARE_GROUP_ENABLE_CONFIG}
    expected[SHARE_GROUP_ENABLE_CONFIG] = True
    assert config.to_dict() == expected


def test_none_enable_flag_resolves_to_boolean_default():
    config = ShareGroupConfig.from_props({SHARE_GROUP_ENABLE_CONFIG: None})
    assert config.is_share_group_enabled is False


def test_from_config_reads_every_key_once_without_range_checks():
    values = dict(CONFIG_DEF.default_values())
    # Outside the per-key range; the loader trusts the accessor
    values[SHARE_GROUP_DELIVERY_COUNT_LIMIT_CONFIG] = 50
    accessor = FakeAccessor(values)

    config = ShareGroupConfig.from_config(accessor)

    assert config.share_group_delivery_count_limit == 50
    assert sorted(accessor.calls) == sorted(CONFIG_DEF.names())


def test_validation_runs_once_per_construction(monkeypatch):
    calls = []
    original = ShareGroupConfig.validate

    def counting_validate(self):
        calls.append(self)
        original(self)

    monkeypatch.setattr(ShareGroupConfig, "validate", counting_validate)
    ShareGroupConfig.from_config(FakeAccessor(CONFIG_DEF.default_values()))

    assert len(calls) == 1


def test_config_is_immutable():
    config = ShareGroupConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.share_group_max_groups = 20


# ============================================================================
# Cross-field ordering
# ============================================================================

def test_ordering_rules_in_declared_order():
    assert [(r.key, r.relation, r.other_key) for r in ORDERING_RULES] == [
        (SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_CONFIG, Relation.GREATER_OR_EQUAL,
         SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_CONFIG),
        (SHARE_GROUP_HEARTBEAT_INTERVAL_MS_CONFIG, Relation.GREATER_OR_EQUAL,
         SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_CONFIG),
        (SHARE_GROUP_HEARTBEAT_INTERVAL_MS_CONFIG, Relation.LESS_OR_EQUAL,
         SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_CONFIG),
        (SHARE_GROUP_MAX_SESSION_TIMEOUT_MS_CONFIG, Relation.GREATER_OR_EQUAL,
         SHARE_GROUP_MIN_SESSION_TIMEOUT_MS_CONFIG),
        (SHARE_GROUP_SESSION_TIMEOUT_MS_CONFIG, Relation.GREATER_OR_EQUAL,
         SHARE_GROUP_MIN_SESSION_TIMEOUT_MS_CONFIG),
        (SHARE_GROUP_SESSION_TIMEOUT_MS_CONFIG, Relation.LESS_OR_EQUAL,
         SHARE_GROUP_MAX_SESSION_TIMEOUT_MS_CONFIG),
        (SHARE_GROUP_RECORD_LOCK_DURATION_MS_CONFIG, Relation.GREATER_OR_EQUAL,
         SHARE_GROUP_MIN_RECORD_LOCK_DURATION_MS_CONFIG),
        (SHARE_GROUP_MAX_RECORD_LOCK_DURATION_MS_CONFIG, Relation.GREATER_OR_EQUAL,
         SHARE_GROUP_RECORD_LOCK_DURATION_MS_CONFIG),
    ]


@pytest.mark.parametrize("overrides, key, relation, other_key", [
    ({"share_group_max_heartbeat_interval_ms": 4000},
     SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_CONFIG, Relation.GREATER_OR_EQUAL,
     SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_CONFIG),
    ({"share_group_min_heartbeat_interval_ms": 6000},
     SHARE_GROUP_HEARTBEAT_INTERVAL_MS_CONFIG, Relation.GREATER_OR_EQUAL,
     SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_CONFIG),
    ({"share_group_heartbeat_interval_ms": 16000},
     SHARE_GROUP_HEARTBEAT_INTERVAL_MS_CONFIG, Relation.LESS_OR_EQUAL,
     SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_CONFIG),
    ({"share_group_max_session_timeout_ms": 40000},
     SHARE_GROUP_MAX_SESSION_TIMEOUT_MS_CONFIG, Relation.GREATER_OR_EQUAL,
     SHARE_GROUP_MIN_SESSION_TIMEOUT_MS_CONFIG),
    ({"share_group_min_session_timeout_ms": 50000},
     SHARE_GROUP_SESSION_TIMEOUT_MS_CONFIG, Relation.GREATER_OR_EQUAL,
     SHARE_GROUP_MIN_SESSION_TIMEOUT_MS_CONFIG),
    ({"share_group_session_timeout_ms": 61000},
     SHARE_GROUP_SESSION_TIMEOUT_MS_CONFIG, Relation.LESS_OR_EQUAL,
     SHARE_GROUP_MAX_SESSION_TIMEOUT_MS_CONFIG),
    ({"share_group_record_lock_duration_ms": 10000},
     SHARE_GROUP_RECORD_LOCK_DURATION_MS_CONFIG, Relation.GREATER_OR_EQUAL,
     SHARE_GROUP_MIN_RECORD_LOCK_DURATION_MS_CONFIG),
    ({"share_group_record_lock_duration_ms": 50000, "share_group_max_record_lock_duration_ms": 40000},
     SHARE_GROUP_MAX_RECORD_LOCK_DURATION_MS_CONFIG, Relation.GREATER_OR_EQUAL,
     SHARE_GROUP_RECORD_LOCK_DURATION_MS_CONFIG),
])
def test_each_ordering_violation_names_both_keys(overrides, key, relation, other_key):
    with pytest.raises(ConfigOrderingError) as exc_info:
        ShareGroupConfig(**overrides)

    error = exc_info.value
    assert error.key == key
    assert error.relation is relation
    assert error.other_key == other_key
    assert str(error) == f"{key} must be {relation.text} {other_key}"


def test_ordering_error_is_config_exception_and_value_error():
    with pytest.raises(ConfigException):
        ShareGroupConfig(share_group_max_session_timeout_ms=1)
    with pytest.raises(ValueError):
        ShareGroupConfig(share_group_max_session_timeout_ms=1)


def test_first_failing_check_is_reported():
    # Violates both the heartbeat (check 2) and session timeout (check 5) families
    with pytest.raises(ConfigOrderingError) as exc_info:
        ShareGroupConfig(
            share_group_min_heartbeat_interval_ms=6000,
            share_group_min_session_timeout_ms=50000,
        )
    assert exc_info.value.key == SHARE_GROUP_HEARTBEAT_INTERVAL_MS_CONFIG


def test_equal_value_and_bounds_accepted():
    config = ShareGroupConfig(
        share_group_heartbeat_interval_ms=7000,
        share_group_min_heartbeat_interval_ms=7000,
        share_group_max_heartbeat_interval_ms=7000,
        share_group_session_timeout_ms=50000,
        share_group_min_session_timeout_ms=50000,
        share_group_max_session_timeout_ms=50000,
        share_group_record_lock_duration_ms=30000,
        share_group_min_record_lock_duration_ms=30000,
        share_group_max_record_lock_duration_ms=30000,
    )
    assert config.share_group_heartbeat_interval_ms == 7000


def test_heartbeat_scenario_through_props():
    base = {
        SHARE_GROUP_HEARTBEAT_INTERVAL_MS_CONFIG: "5000",
        SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_CONFIG: "5000",
        SHARE_GROUP_MAX_HEARTBEAT_INTERVAL_MS_CONFIG: "15000",
    }
    assert ShareGroupConfig.from_props(base).share_group_heartbeat_interval_ms == 5000

    mutated = dict(base, **{SHARE_GROUP_MIN_HEARTBEAT_INTERVAL_MS_CONFIG: "6000"})
    with pytest.raises(ConfigOrderingError) as exc_info:
        ShareGroupConfig.from_props(mutated)
    assert str(exc_info.value) == (
        "group.share.heartbeat.interval.ms must be greater than or equals to "
        "group.share.min.heartbeat.interval.ms"
    )


def test_record_lock_below_minimum_fails_ordering_even_without_range_check():
    with pytest.raises(ConfigOrderingError) as exc_info:
        ShareGroupConfig(
            share_group_record_lock_duration_ms=500,
            share_group_min_record_lock_duration_ms=1000,
        )
    assert exc_info.value.key == SHARE_GROUP_RECORD_LOCK_DURATION_MS_CONFIG
    assert exc_info.value.other_key == SHARE_GROUP_MIN_RECORD_LOCK_DURATION_MS_CONFIG


def test_record_lock_below_range_rejected_by_definition_first():
    with pytest.raises(ConfigException) as exc_info:
        ShareGroupConfig.from_props({SHARE_GROUP_RECORD_LOCK_DURATION_MS_CONFIG: "500"})
    assert not isinstance(exc_info.value, ConfigOrderingError)
    assert "Value must be at least 1000" in str(exc_info.value)


# ============================================================================
# Per-key boundaries
# ============================================================================

@pytest.mark.parametrize("limit", ["2", "10"])
def test_delivery_count_limit_bounds_accepted(limit):
    config = ShareGroupConfig.from_props({SHARE_GROUP_DELIVERY_COUNT_LIMIT_CONFIG: limit})
    assert config.share_group_delivery_count_limit == int(limit)


@pytest.mark.parametrize("limit", ["1", "11"])
def test_delivery_count_limit_outside_bounds_rejected(limit):
    with pytest.raises(ConfigException) as exc_info:
        ShareGroupConfig.from_props({SHARE_GROUP_DELIVERY_COUNT_LIMIT_CONFIG: limit})
    assert SHARE_GROUP_DELIVERY_COUNT_LIMIT_CONFIG in str(exc_info.value)


@pytest.mark.parametrize("key, value", [
    (SHARE_GROUP_MAX_GROUPS_CONFIG, "0"),
    (SHARE_GROUP_MAX_GROUPS_CONFIG, "101"),
    (SHARE_GROUP_MAX_SIZE_CONFIG, "9"),
    (SHARE_GROUP_MAX_SIZE_CONFIG, "1001"),
    (SHARE_GROUP_PARTITION_MAX_RECORD_LOCKS_CONFIG, "99"),
    (SHARE_GROUP_MAX_RECORD_LOCK_DURATION_MS_CONFIG, "3600001"),
    (SHARE_GROUP_SESSION_TIMEOUT_MS_CONFIG, "0"),
    (SHARE_GROUP_ENABLE_CONFIG, "maybe"),
])
def test_per_key_violations_rejected(key, value):
    with pytest.raises(ConfigException) as exc_info:
        ShareGroupConfig.from_props({key: value})
    assert key in str(exc_info.value)
