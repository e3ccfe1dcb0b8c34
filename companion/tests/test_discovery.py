import contextlib
import io
import socket
import unittest

from companion.discovery import ANNOUNCE_PREFIX, Broadcaster, NoNetworkError, announcement


def _bound_receiver():
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    s.bind(("127.0.0.1", 0))
    s.settimeout(2.0)
    return s, s.getsockname()[1]


class TestDiscovery(unittest.TestCase):
    def test_announcement_format(self):
        self.assertEqual(announcement("192.168.1.5"), b"VirtuosoCompanion:192.168.1.5")
        self.assertTrue(announcement("10.0.0.1").startswith(ANNOUNCE_PREFIX.encode()))
        self.assertEqual(announcement("10.0.0.1", prefix="X:"), b"X:10.0.0.1")

    def test_broadcaster_sends_immediately_and_repeats(self):
        rx, port = _bound_receiver()
        self.addCleanup(rx.close)
        b = Broadcaster(port=port, interval=0.05, address="127.0.0.1", get_ip=lambda: "10.0.0.7")
        with contextlib.redirect_stdout(io.StringIO()):
            b.start()
            try:
                first, _ = rx.recvfrom(1024)
                second, _ = rx.recvfrom(1024)
            finally:
                b.stop()
        self.assertEqual(first, b"VirtuosoCompanion:10.0.0.7")
        self.assertEqual(second, first)
        self.assertGreaterEqual(b.sent, 2)

    def test_failed_send_does_not_stop_broadcasting(self):
        rx, port = _bound_receiver()
        self.addCleanup(rx.close)
        calls = {"n": 0}

        def flaky_ip():
            calls["n"] += 1
            # Second call is the first tick
            if calls["n"] == 2:
                raise NoNetworkError("adapter down")
            return "10.0.0.8"

        b = Broadcaster(port=port, interval=0.05, address="127.0.0.1", get_ip=flaky_ip)
        buf = io.StringIO()
        with contextlib.redirect_stdout(buf):
            b.start()
            try:
                data, _ = rx.recvfrom(1024)
            finally:
                b.stop()
        self.assertEqual(data, b"VirtuosoCompanion:10.0.0.8")
        self.assertIn("broadcast failed", buf.getvalue())

    def test_start_survives_missing_address(self):
        def no_ip():
            raise NoNetworkError("adapter down")

        b = Broadcaster(port=9, interval=0.05, address="127.0.0.1", get_ip=no_ip)
        buf = io.StringIO()
        with contextlib.redirect_stdout(buf):
            b.start()
            try:
                self.assertTrue(b._t.is_alive())
            finally:
                b.stop()
        self.assertIn("address unavailable", buf.getvalue())
        self.assertEqual(b.sent, 0)

    def test_stop_is_idempotent(self):
        b = Broadcaster(get_ip=lambda: "10.0.0.9")
        b.stop()
        b.stop()


if __name__ == "__main__":
    unittest.main()
