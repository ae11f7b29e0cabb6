"""
EduBoost Gateway — Session Store Unit Tests
============================================

What:  Tests for token issue, lookup, expiry and sweeping.
How:   A FakeClock drives time so expiry is exact and instant.

Test Strategy:
    ✅ Tokens are 64 hex chars and unique
    ✅ Unknown/empty tokens are never valid
    ✅ Expired tokens are invalid even before a sweep (lazy check)
    ✅ role_of falls back to "student"; lookup() does not
    ✅ sweep removes exactly the expired entries
"""

import re

import pytest

from conftest import FakeClock
from eduboost.services.session_store import ROLE_PROFESSOR, ROLE_STUDENT, SessionStore

HEX64 = re.compile(r"^[0-9a-f]{64}$")


@pytest.fixture
def store(clock):
    return SessionStore(ttl_seconds=3600, clock=clock)


class TestCreateSession:

    def test_token_format(self, store):
        token = store.create_session()
        assert HEX64.match(token)

    def test_tokens_are_unique(self, store):
        tokens = {store.create_session() for _ in range(200)}
        assert len(tokens) == 200
        assert len(store) == 200

    def test_role_is_recorded(self, store):
        student = store.create_session(ROLE_STUDENT)
        professor = store.create_session(ROLE_PROFESSOR)
        assert store.role_of(student) == ROLE_STUDENT
        assert store.role_of(professor) == ROLE_PROFESSOR

    def test_unknown_role_rejected(self, store):
        with pytest.raises(ValueError):
            store.create_session("admin")


class TestValidity:

    @pytest.mark.parametrize("token", [None, "", "deadbeef", "0" * 64])
    def test_unknown_tokens_are_invalid(self, store, token):
        store.create_session()
        assert store.is_valid(token) is False
        assert store.lookup(token) is None

    def test_fresh_token_is_valid(self, store):
        token = store.create_session()
        assert store.is_valid(token) is True

    def test_valid_until_just_before_expiry(self, store, clock):
        token = store.create_session()
        clock.advance(3599.999)
        assert store.is_valid(token) is True

    def test_expired_without_sweep(self, store, clock: FakeClock):
        """Expiry is checked on lookup; sweeping is not required."""
        token = store.create_session(ROLE_PROFESSOR)
        clock.advance(3600)
        assert store.is_valid(token) is False
        # Lazily evicted on that lookup
        assert len(store) == 0

    def test_role_of_defaults_to_student(self, store, clock):
        token = store.create_session(ROLE_PROFESSOR)
        clock.advance(7200)
        assert store.role_of(token) == ROLE_STUDENT
        assert store.role_of("unknown") == ROLE_STUDENT

    def test_lookup_distinguishes_missing_from_student(self, store):
        token = store.create_session(ROLE_STUDENT)
        assert store.lookup(token).role == ROLE_STUDENT
        assert store.lookup("missing") is None

    def test_remove(self, store):
        token = store.create_session()
        assert store.remove(token) is True
        assert store.is_valid(token) is False
        assert store.remove(token) is False


class TestSweep:

    def test_sweep_removes_only_expired(self, store, clock):
        old = store.create_session()
        clock.advance(1800)
        new = store.create_session()
        clock.advance(1800)  # `old` expires exactly now

        removed = store.sweep()

        assert removed == 1
        assert store.is_valid(old) is False
        assert store.is_valid(new) is True

    def test_sweep_with_explicit_time(self, store, clock):
        store.create_session()
        store.create_session()
        assert store.sweep(now=clock.now + 10) == 0
        assert store.sweep(now=clock.now + 3600) == 2
        assert len(store) == 0
