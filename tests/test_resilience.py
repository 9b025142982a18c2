import unittest
from unittest.mock import MagicMock, patch
from audiocomic.agents.infrastructure.resilience_agent import ResilienceAgent, safe_retry


class TestResilience(unittest.TestCase):
    def setUp(self):
        self.agent = ResilienceAgent(config={"required_env": ["AUDIOCOMIC_TEST_MISSING_VAR"]})

    @patch("audiocomic.agents.infrastructure.resilience_agent.time.sleep")
    def test_retry_until_success(self, mock_sleep):
        func = MagicMock(side_effect=[ValueError("flaky"), ValueError("flaky"), "ok"])
        wrapped = self.agent.retry(tries=3, delay=1, backoff=2)(func)

        self.assertEqual(wrapped(), "ok")
        self.assertEqual(func.call_count, 3)
        self.assertEqual([c.args[0] for c in mock_sleep.call_args_list], [1, 2])

    @patch("audiocomic.agents.infrastructure.resilience_agent.time.sleep")
    def test_last_error_propagates(self, mock_sleep):
        func = MagicMock(side_effect=ValueError("always"))
        with self.assertRaises(ValueError):
            safe_retry(tries=2, delay=0)(func)()
        self.assertEqual(func.call_count, 2)

    def test_single_try_does_not_sleep(self):
        func = MagicMock(side_effect=KeyError("once"))
        with patch("audiocomic.agents.infrastructure.resilience_agent.time.sleep") as mock_sleep:
            with self.assertRaises(KeyError):
                self.agent.retry(tries=1)(func)()
            mock_sleep.assert_not_called()

    def test_only_listed_exceptions_are_retried(self):
        func = MagicMock(side_effect=TypeError("bug"))
        with self.assertRaises(TypeError):
            self.agent.retry(exceptions=(ValueError,), tries=3)(func)()
        self.assertEqual(func.call_count, 1)

    def test_health_reports_missing_env(self):
        health = self.agent.run(None)
        self.assertEqual(health["status"], "degraded")
        self.assertIn("AUDIOCOMIC_TEST_MISSING_VAR", health["checks"]["env_vars"])
        self.assertIn("GB free", health["checks"]["disk_space"])

if __name__ == "__main__":
    unittest.main()
