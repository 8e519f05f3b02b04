import threading
import unittest
from unittest.mock import MagicMock

from nearby.client import ApiClientError, NearbyApiClient
from nearby.polling import Poller


def _response(status_code, payload):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = "Error"
    response.json.return_value = payload
    return response


class NearbyApiClientTests(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock()
        self.client = NearbyApiClient("http://api.test/", session=self.session)

    def test_signin_stores_token_for_later_calls(self):
        self.session.request.return_value = _response(
            200, {"accessToken": "tok", "user": {"id": "u1"}}
        )
        user = self.client.signin("a@b.co", "secret123")
        self.assertEqual(user["id"], "u1")

        self.session.request.return_value = _response(200, {"users": []})
        self.assertEqual(self.client.nearby_users(), [])
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("GET", "http://api.test/nearby-users"))
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer tok")

    def test_send_message_payload(self):
        message = {"senderId": "a", "recipientId": "b", "message": "hi", "timestamp": "t"}
        self.session.request.return_value = _response(
            200, {"success": True, "message": message}
        )
        self.assertEqual(self.client.send_message("b", "hi"), message)
        kwargs = self.session.request.call_args.kwargs
        self.assertEqual(kwargs["json"], {"recipientId": "b", "message": "hi"})

    def test_error_body_is_raised(self):
        self.session.request.return_value = _response(401, {"error": "Unauthorized"})
        with self.assertRaises(ApiClientError) as ctx:
            self.client.get_messages("b")
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.message, "Unauthorized")


class PollerTests(unittest.TestCase):
    def test_runs_repeatedly_until_stopped(self):
        calls = []
        done = threading.Event()

        def tick():
            calls.append(1)
            if len(calls) >= 3:
                done.set()

        poller = Poller(0.01, tick).start()
        self.assertTrue(done.wait(2))
        poller.stop(timeout=1)
        self.assertFalse(poller.running)
        count = len(calls)
        done.wait(0.05)
        self.assertEqual(len(calls), count)

    def test_keeps_polling_after_failures(self):
        calls = []
        done = threading.Event()

        def tick():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("network down")
            done.set()

        with self.assertLogs("nearby.polling", level="ERROR"):
            with Poller(0.01, tick):
                self.assertTrue(done.wait(2))

    def test_rejects_non_positive_interval(self):
        with self.assertRaises(ValueError):
            Poller(0, lambda: None)


if __name__ == "__main__":
    unittest.main()
