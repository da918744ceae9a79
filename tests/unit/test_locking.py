"""Unit tests for per-key lock striping."""

import pytest

from crisisconnect.service_layer.locking import DEFAULT_STRIPES, StripedLock


class TestStripedLock:
    def test_same_key_same_lock(self) -> None:
        locks = StripedLock()

        assert locks.for_key("a@x.com") is locks.for_key("a@x.com")

    def test_keys_spread_over_stripes(self) -> None:
        locks = StripedLock(8)

        used = {id(locks.for_key(f"user{i}@x.com")) for i in range(200)}

        assert len(locks) == 8
        assert len(used) > 1

    def test_default_stripe_count(self) -> None:
        assert len(StripedLock()) == DEFAULT_STRIPES

    def test_needs_at_least_one_stripe(self) -> None:
        with pytest.raises(ValueError):
            StripedLock(0)
