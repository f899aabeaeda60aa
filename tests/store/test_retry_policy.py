import pytest

from models.config import RedisConfig
from store.retry_policy import RetryPolicy


def test_defaults_match_connection_contract():
    policy = RetryPolicy()
    assert policy.delay == 1.0
    assert policy.connect_timeout == 2.0
    assert policy.liveness_interval == 1.0


def test_delay_is_constant_for_every_attempt():
    policy = RetryPolicy(delay=0.5)
    assert {policy.next_delay(n) for n in (1, 2, 10, 1000)} == {0.5}


def test_check_interval_overrides_liveness_interval():
    policy = RetryPolicy(delay=1.0, check_interval=0.25)
    assert policy.liveness_interval == 0.25


def test_zero_delay_still_paces_liveness_checks():
    assert RetryPolicy(delay=0).liveness_interval > 0


@pytest.mark.parametrize("kwargs", [
    {"delay": -1},
    {"connect_timeout": 0},
    {"check_interval": 0},
])
def test_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


def test_from_config():
    policy = RetryPolicy.from_config(RedisConfig(retry_delay=3.0, connect_timeout=0.5))
    assert policy.delay == 3.0
    assert policy.connect_timeout == 0.5


def test_is_immutable():
    policy = RetryPolicy()
    with pytest.raises(AttributeError):
        policy.delay = 5.0
