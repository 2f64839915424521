"""Tests for concurrent access locking."""
import os
import threading
import time

import pytest

from infrastack.core.lock import InventoryLock, LockError, inventory_lock


class TestInventoryLock:
    """Test file-based locking mechanism."""

    def test_acquire_and_release(self, tmp_path):
        """Can acquire and release lock."""
        lock_file = tmp_path / "inventory.lock"
        lock = InventoryLock(lock_file=lock_file)

        assert lock.acquire() is True
        assert lock_file.exists()

        lock.release()
        assert lock_file.exists()
        assert lock_file.read_text() == ""

    def test_concurrent_lock_fails(self, tmp_path):
        """Second lock attempt fails when first is held."""
        lock_file = tmp_path / "inventory.lock"

        lock1 = InventoryLock(lock_file=lock_file, timeout=0)
        lock1.acquire()

        lock2 = InventoryLock(lock_file=lock_file, timeout=0)
        with pytest.raises(LockError) as exc_info:
            lock2.acquire()

        assert "locked by another InfraStack operation" in str(exc_info.value)
        assert f"PID {os.getpid()}" in str(exc_info.value)

        lock1.release()

    def test_context_manager(self, tmp_path):
        """Lock works as context manager."""
        lock_file = tmp_path / "inventory.lock"

        with InventoryLock(lock_file=lock_file):
            assert lock_file.exists()

        # Free again
        with InventoryLock(lock_file=lock_file, timeout=0):
            pass

    def test_lock_timeout(self, tmp_path):
        """Waiting lock gives up after its timeout."""
        lock_file = tmp_path / "inventory.lock"

        with InventoryLock(lock_file=lock_file):
            waiting = InventoryLock(lock_file=lock_file, timeout=1)
            with pytest.raises(LockError):
                waiting.acquire()

    def test_released_on_exception(self, tmp_path):
        lock_file = tmp_path / "inventory.lock"

        with pytest.raises(RuntimeError):
            with inventory_lock(lock_file):
                raise RuntimeError("boom")

        # Free again
        with inventory_lock(lock_file):
            pass

    def test_release_without_acquire(self, tmp_path):
        lock = InventoryLock(lock_file=tmp_path / "inventory.lock")
        lock.release()

    def test_waiter_and_newcomer_never_both_hold(self, tmp_path):
        """After a release, a waiting lock and a new lock exclude each other."""
        lock_file = tmp_path / "inventory.lock"
        first = InventoryLock(lock_file=lock_file)
        first.acquire()

        waiter = InventoryLock(lock_file=lock_file, timeout=5)
        acquired = threading.Event()

        def wait_for_lock():
            waiter.acquire()
            acquired.set()

        thread = threading.Thread(target=wait_for_lock)
        thread.start()
        time.sleep(0.3)
        first.release()

        assert acquired.wait(timeout=5)
        thread.join()

        newcomer = InventoryLock(lock_file=lock_file, timeout=0)
        with pytest.raises(LockError):
            newcomer.acquire()

        waiter.release()
        newcomer.acquire()
        newcomer.release()
