import unittest
from unittest import mock

import requests

from support import make_response

from modtiers.exceptions import (
    BadRequestError,
    NetworkError,
    NotFoundError,
    ParseError,
    RetryExhaustedError,
    TransientError,
    UnauthorizedError,
)
from modtiers.http import ResilientHttpClient

URL = "https://api.example.test/v2/thing"


def client_with(responses, **kwargs):
    session = mock.Mock()
    session.headers = {}
    session.get.side_effect = responses
    sleeps = []
    client = ResilientHttpClient(session=session, sleep=sleeps.append, **kwargs)
    return client, session, sleeps


class TestRetryPolicy(unittest.TestCase):
    def test_429_honours_retry_after_then_succeeds(self):
        client, session, sleeps = client_with(
            [make_response(429, headers={"Retry-After": "1"}), make_response(200, {"ok": True})],
            initial_delay=5,
        )
        self.assertEqual(client.get_json(URL), {"ok": True})
        self.assertEqual(session.get.call_count, 2)
        self.assertEqual(sleeps, [1.0])

    def test_429_without_retry_after_uses_initial_delay(self):
        client, session, sleeps = client_with(
            [make_response(429), make_response(200, [])], initial_delay=0.25
        )
        client.get(URL)
        self.assertEqual(sleeps, [0.25])

    def test_non_numeric_retry_after_falls_back_to_initial_delay(self):
        client, _, sleeps = client_with(
            [make_response(429, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"}), make_response(200)],
            initial_delay=2,
        )
        client.get(URL)
        self.assertEqual(sleeps, [2])

    def test_500_twice_then_200_makes_three_calls(self):
        client, session, sleeps = client_with(
            [make_response(500), make_response(500), make_response(200, {"v": 1})],
            max_retries=5,
            initial_delay=0.5,
        )
        self.assertEqual(client.get_json(URL), {"v": 1})
        self.assertEqual(session.get.call_count, 3)
        self.assertEqual(sleeps, [0.5, 1.0])

    def test_400_fails_immediately_without_sleeping(self):
        client, session, sleeps = client_with([make_response(400, raw="bad query")])
        with self.assertRaises(BadRequestError) as ctx:
            client.get(URL)
        self.assertEqual(session.get.call_count, 1)
        self.assertEqual(sleeps, [])
        self.assertEqual(ctx.exception.status_code, 400)

    def test_404_is_not_found(self):
        client, session, _ = client_with([make_response(404)])
        with self.assertRaises(NotFoundError):
            client.get(URL)
        self.assertEqual(session.get.call_count, 1)

    def test_403_is_unauthorized(self):
        client, _, _ = client_with([make_response(403)])
        with self.assertRaises(UnauthorizedError):
            client.get(URL)

    def test_exhausted_retries_carry_last_status(self):
        client, session, sleeps = client_with(
            [make_response(503)] * 3 + [make_response(502)], max_retries=3, initial_delay=1
        )
        with self.assertRaises(RetryExhaustedError) as ctx:
            client.get(URL)
        self.assertEqual(ctx.exception.status_code, 502)
        self.assertIsInstance(ctx.exception, TransientError)
        self.assertEqual(session.get.call_count, 4)
        self.assertEqual(sleeps, [1, 2, 4])

    def test_exhausted_429(self):
        client, session, _ = client_with([make_response(429)] * 2, max_retries=1)
        with self.assertRaises(RetryExhaustedError) as ctx:
            client.get(URL)
        self.assertEqual(ctx.exception.status_code, 429)
        self.assertEqual(session.get.call_count, 2)

    def test_zero_retries_means_one_call(self):
        client, session, sleeps = client_with([make_response(500)], max_retries=0)
        with self.assertRaises(RetryExhaustedError):
            client.get(URL)
        self.assertEqual(session.get.call_count, 1)
        self.assertEqual(sleeps, [])

    def test_connection_errors_are_retried(self):
        client, session, sleeps = client_with(
            [requests.ConnectionError("reset"), make_response(200, {"a": 1})], initial_delay=1
        )
        self.assertEqual(client.get_json(URL), {"a": 1})
        self.assertEqual(sleeps, [1])

    def test_persistent_timeouts_raise_network_error(self):
        client, session, _ = client_with([requests.Timeout("slow")] * 3, max_retries=2)
        with self.assertRaises(NetworkError):
            client.get(URL)
        self.assertEqual(session.get.call_count, 3)

    def test_other_transport_errors_are_retried(self):
        client, session, sleeps = client_with(
            [requests.exceptions.ChunkedEncodingError("truncated body"), make_response(200, {"a": 1})],
            initial_delay=1,
        )
        self.assertEqual(client.get_json(URL), {"a": 1})
        self.assertEqual(sleeps, [1])

    def test_persistent_transport_errors_raise_network_error(self):
        client, session, _ = client_with(
            [
                requests.exceptions.ContentDecodingError("bad gzip"),
                requests.exceptions.TooManyRedirects("loop"),
            ],
            max_retries=1,
        )
        with self.assertRaises(NetworkError) as ctx:
            client.get(URL)
        self.assertIsInstance(ctx.exception.__cause__, requests.exceptions.TooManyRedirects)
        self.assertEqual(session.get.call_count, 2)

    def test_per_call_overrides(self):
        client, session, sleeps = client_with(
            [make_response(500), make_response(200)], max_retries=0, initial_delay=9
        )
        client.get(URL, headers={"x-api-key": "k"}, timeout=3, max_retries=1, initial_delay=0.1)
        self.assertEqual(sleeps, [0.1])
        _, kwargs = session.get.call_args
        self.assertEqual(kwargs["timeout"], 3)
        self.assertEqual(kwargs["headers"], {"x-api-key": "k"})

    def test_malformed_json_is_parse_error(self):
        client, _, _ = client_with([make_response(200, raw="<html>oops</html>")])
        with self.assertRaises(ParseError):
            client.get_json(URL)


if __name__ == '__main__':
    unittest.main()
