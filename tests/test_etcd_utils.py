"""
Tests for etcd liveness probes and polling
"""
import pytest
import requests
from unittest.mock import Mock, patch
from etcdemo.utils.etcd_utils import is_node_alive, wait_until


def response(status_code):
    resp = Mock()
    resp.status_code = status_code
    resp.ok = status_code < 400
    return resp


class TestIsNodeAlive:
    """Test the GET /version readiness check"""

    @patch('requests.Session.get')
    def test_version_ok(self, mock_get):
        mock_get.return_value = response(200)

        assert is_node_alive("http://n1:2379", timeout=0.5) is True
        mock_get.assert_called_once_with("http://n1:2379/version", timeout=0.5)

    @patch('requests.Session.get')
    def test_server_error_is_not_ready(self, mock_get):
        mock_get.return_value = response(503)

        assert is_node_alive("http://n1:2379") is False

    @pytest.mark.parametrize("error", [
        requests.exceptions.ConnectionError("connection refused"),
        requests.exceptions.ConnectTimeout("timed out"),
        requests.exceptions.ReadTimeout("timed out"),
    ], ids=["refused", "connect-timeout", "read-timeout"])
    @patch('requests.Session.get')
    def test_transport_errors_are_not_ready(self, mock_get, error):
        mock_get.side_effect = error

        assert is_node_alive("http://n1:2379") is False

    @patch('requests.Session.close')
    @patch('requests.Session.get')
    def test_session_closed_after_failure(self, mock_get, mock_close):
        mock_get.side_effect = requests.exceptions.ConnectionError("connection refused")

        is_node_alive("http://n1:2379")

        mock_close.assert_called_once()


class FakeClock:
    """Clock that only moves when sleep is called"""

    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class TestWaitUntil:
    """Test polling with an injected clock"""

    def test_immediately_true(self):
        clock = FakeClock()

        assert wait_until(lambda: True, timeout=1.0, interval=0.1, clock=clock, sleep=clock.sleep)
        assert clock.sleeps == []

    def test_true_after_some_polls(self):
        clock = FakeClock()
        answers = iter([False, False, True])

        assert wait_until(lambda: next(answers), timeout=1.0, interval=0.1, clock=clock, sleep=clock.sleep)
        assert clock.sleeps == [0.1, 0.1]

    def test_gives_up_at_deadline(self):
        clock = FakeClock()
        predicate = Mock(return_value=False)

        assert not wait_until(predicate, timeout=1.0, interval=0.25, clock=clock, sleep=clock.sleep)

        # Polled at 0, 0.25, 0.5, 0.75 and once more at the deadline
        assert predicate.call_count == 5
        assert clock.now == pytest.approx(101.0)

    def test_zero_timeout_polls_once(self):
        clock = FakeClock()
        predicate = Mock(return_value=False)

        assert not wait_until(predicate, timeout=0.0, interval=0.25, clock=clock, sleep=clock.sleep)
        assert predicate.call_count == 1
        assert clock.sleeps == []
