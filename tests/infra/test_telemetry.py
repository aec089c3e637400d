from __future__ import annotations

import unittest

from lesbot.observability.telemetry import (
    counter,
    get_counter,
    get_latency_stats,
    get_p95,
    log_event,
    reset_latencies,
    time_block,
)


class TelemetryTests(unittest.TestCase):
    def setUp(self):
        reset_latencies()

    def test_latency_suffix_added(self):
        with time_block("tts.generate.latency"):
            pass

        stats = get_latency_stats("tts.generate.latency_ms")
        self.assertEqual(stats["count"], 1)
        self.assertGreaterEqual(get_p95("tts.generate.latency"), 0.0)

    def test_time_block_records_on_error(self):
        with self.assertRaises(RuntimeError), time_block("chat.latency"):
            raise RuntimeError("provider down")

        self.assertEqual(get_latency_stats("chat.latency")["count"], 1)

    def test_empty_stats(self):
        self.assertEqual(get_latency_stats("never.used")["count"], 0)
        self.assertEqual(get_p95("never.used"), 0.0)

    def test_counter_increments(self):
        before = get_counter("test.counter")
        self.assertEqual(counter("test.counter"), before + 1)
        self.assertEqual(counter("test.counter", 0), before + 1)

    def test_log_event_writes_info(self):
        with self.assertLogs("lesbot.telemetry", level="INFO") as logs:
            log_event("api.chat.request", chars=5, images=0)

        self.assertIn("event=api.chat.request", logs.output[0])
        self.assertIn("'chars': 5", logs.output[0])


if __name__ == "__main__":
    unittest.main()
