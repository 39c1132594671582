"""Tests for the capacity guard."""

import pytest

from pacedload.common.errors import CapacityExceededError, ConfigurationError
from pacedload.engine import capacity
from pacedload.engine.capacity import available_parallelism, check_capacity


def test_available_parallelism_is_positive():
    """Test the host reports at least one usable CPU."""
    assert available_parallelism() >= 1


@pytest.mark.parametrize("client_count,available", [(1, 2), (3, 4), (15, 16)])
def test_allows_client_count_below_parallelism(client_count, available):
    """Test counts strictly below the parallelism pass."""
    assert check_capacity(client_count, available) == available


@pytest.mark.parametrize("client_count,available", [(4, 4), (5, 4), (1, 1), (64, 8)])
def test_rejects_oversubscription(client_count, available):
    """Test counts at or above the parallelism are rejected, one core reserved."""
    with pytest.raises(CapacityExceededError) as exc_info:
        check_capacity(client_count, available)

    assert isinstance(exc_info.value, ConfigurationError)
    assert str(exc_info.value) == (
        f"Client count {client_count} exceeds number of available cores: {available}"
    )


def test_probes_host_when_parallelism_omitted(monkeypatch):
    """Test the host's parallelism is used by default."""
    monkeypatch.setattr(capacity, "available_parallelism", lambda: 3)
    assert check_capacity(2) == 3
    with pytest.raises(CapacityExceededError):
        check_capacity(3)
