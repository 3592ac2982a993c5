"""Tests for the persisted import lock and masters flag."""

import pytest

from ledger_ingestion.services import ImportLock
from ledger_kernel.exceptions import ConcurrencyRejectedError


class TestAcquireRelease:
    def test_second_acquire_is_rejected(self, import_lock):
        assert import_lock.acquire() is True
        assert import_lock.acquire() is False
        assert import_lock.is_importing()

    def test_release_allows_reacquire(self, import_lock):
        assert import_lock.acquire()
        import_lock.release()
        assert not import_lock.is_importing()
        assert import_lock.acquire()

    def test_lock_is_shared_across_instances(self, session_factory, deterministic_clock):
        first = ImportLock(session_factory, clock=deterministic_clock)
        second = ImportLock(session_factory, clock=deterministic_clock)
        assert first.acquire()
        assert not second.acquire()
        first.release()
        assert second.acquire()

    def test_fresh_database_is_not_importing(self, import_lock):
        assert import_lock.is_importing() is False

    def test_rejection_logged(self, import_lock, captured_logs):
        import_lock.acquire()
        import_lock.acquire()
        messages = [r["message"] for r in captured_logs()]
        assert "import_lock_acquired" in messages
        assert "import_lock_rejected" in messages


class TestStaleTakeover:
    def test_stale_lock_taken_over(self, session_factory, deterministic_clock):
        lock = ImportLock(session_factory, clock=deterministic_clock, stale_after_seconds=600)
        assert lock.acquire()
        deterministic_clock.advance(60)
        assert not lock.acquire()
        deterministic_clock.advance(600)
        assert lock.acquire()

    def test_without_threshold_lock_never_expires(self, import_lock, deterministic_clock):
        assert import_lock.acquire()
        deterministic_clock.advance(7 * 24 * 3600)
        assert not import_lock.acquire()


class TestHold:
    def test_hold_releases_on_exit(self, import_lock):
        with import_lock.hold():
            assert import_lock.is_importing()
        assert not import_lock.is_importing()

    def test_hold_releases_on_error(self, import_lock):
        with pytest.raises(RuntimeError):
            with import_lock.hold():
                raise RuntimeError("boom")
        assert not import_lock.is_importing()

    def test_hold_while_held_is_rejected(self, import_lock):
        import_lock.acquire()
        with pytest.raises(ConcurrencyRejectedError) as exc_info:
            with import_lock.hold():
                pytest.fail("block must not run")
        assert exc_info.value.http_status == 429
        assert import_lock.is_importing()


class TestMastersFlag:
    def test_initially_false(self, import_lock):
        assert import_lock.is_masters_done() is False

    def test_mark_done(self, import_lock):
        import_lock.mark_masters_done()
        assert import_lock.is_masters_done() is True

    def test_mark_done_does_not_touch_lock(self, import_lock):
        import_lock.mark_masters_done()
        assert not import_lock.is_importing()
        assert import_lock.acquire()
