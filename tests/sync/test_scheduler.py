"""Tests for the threading scheduler."""
import threading
from unittest.mock import patch

from modsync.sync.scheduler import ThreadingScheduler


class TestThreadingScheduler:
    """Test ThreadingScheduler."""

    def test_now_is_monotonic(self):
        scheduler = ThreadingScheduler()
        first = scheduler.now()
        assert scheduler.now() >= first

    def test_call_later_fires(self):
        fired = threading.Event()
        ThreadingScheduler().call_later(0.01, fired.set)
        assert fired.wait(timeout=5.0)

    def test_cancel_prevents_callback(self):
        fired = threading.Event()
        handle = ThreadingScheduler().call_later(0.2, fired.set)
        handle.cancel()
        assert not fired.wait(timeout=0.4)

    def test_sleep_zero_does_not_block(self):
        with patch("modsync.sync.scheduler.time.sleep") as mock_sleep:
            ThreadingScheduler().sleep(0)
            ThreadingScheduler().sleep(0.2)
        mock_sleep.assert_called_once_with(0.2)
