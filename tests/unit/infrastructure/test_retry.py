"""
Name: Retry Helper Tests

Responsibilities:
  - Classify transient vs permanent errors
  - Validate decorator parameters
  - Retry only transient failures, re-raising the last one
"""

import pytest

from rentalhub.crosscutting.exceptions import (
    NotFoundError,
    StaleStateError,
    TransportError,
)
from rentalhub.infrastructure.services.retry import (
    create_retry_decorator,
    is_transient_error,
)

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "error, transient",
    [
        (TransportError("down"), True),
        (TransportError("busy", status_code=503), True),
        (TransportError("slow down", status_code=429), True),
        (TransportError("teapot", status_code=418), False),
        (StaleStateError("stale"), False),
        (NotFoundError("gone"), False),
        (ValueError("bug"), False),
    ],
)
def test_is_transient_error(error, transient):
    assert is_transient_error(error) is transient


@pytest.mark.parametrize(
    "kwargs",
    [{"max_attempts": 0}, {"base_delay": -1}, {"max_delay": -0.5}],
)
def test_invalid_parameters(kwargs):
    with pytest.raises(ValueError):
        create_retry_decorator(**kwargs)


def test_retries_transient_then_succeeds():
    calls = []

    @create_retry_decorator(max_attempts=3, base_delay=0, max_delay=0)
    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise TransportError("down", status_code=502)
        return "ok"

    assert flaky() == "ok"
    assert len(calls) == 3


def test_gives_up_and_reraises_last_error():
    calls = []

    @create_retry_decorator(max_attempts=2, base_delay=0, max_delay=0)
    def always_down():
        calls.append(1)
        raise TransportError("down")

    with pytest.raises(TransportError):
        always_down()
    assert len(calls) == 2


def test_permanent_error_is_not_retried():
    calls = []

    @create_retry_decorator(max_attempts=5, base_delay=0, max_delay=0)
    def conflict():
        calls.append(1)
        raise StaleStateError("stale")

    with pytest.raises(StaleStateError):
        conflict()
    assert len(calls) == 1
