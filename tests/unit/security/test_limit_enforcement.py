from __future__ import annotations

import pytest

from profiler_mcp.security import PolicyBlockedError, SecurityLimits, enforce_list_limit


def test_limit_within_bounds_is_returned() -> None:
    assert enforce_list_limit(5, SecurityLimits(max_list_limit=10)) == 5


def test_limit_above_max_is_blocked() -> None:
    with pytest.raises(PolicyBlockedError) as error:
        enforce_list_limit(11, SecurityLimits(max_list_limit=10))

    assert error.value.reason == "Requested limit exceeds max_list_limit."
    assert error.value.hint == "Use a limit of at most 10."


def test_non_positive_limit_is_blocked() -> None:
    with pytest.raises(PolicyBlockedError):
        enforce_list_limit(0, SecurityLimits())
