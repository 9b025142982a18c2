import logging
import time
import functools
import os
import shutil
from typing import Any, Dict, Callable, Type, Tuple
from audiocomic.core.agent import BaseAgent

logger = logging.getLogger(__name__)

class ResilienceAgent(BaseAgent):
    """
    Provides retry logic and environment health checks for the pipeline.
    """
    def __init__(self, agent_name: str = "ResilienceAgent", config: Dict[str, Any] = None):
        super().__init__(agent_name, config)
        self.required_env = self.config.get("required_env", ["OPENAI_API_KEY"])
        self.data_dir = self.config.get("data_dir", os.getenv("AUDIOCOMIC_DATA_DIR", "."))

    def retry(self, exceptions: Tuple[Type[Exception], ...] = (Exception,),
              tries: int = 3, delay: float = 1, backoff: float = 2):
        """
        Retry decorator with exponential backoff. The final attempt's error propagates.
        """
        def decorator_retry(func: Callable):
            @functools.wraps(func)
            def wrapper_retry(*args, **kwargs):
                mtries, mdelay = tries, delay
                while mtries > 1:
                    try:
                        return func(*args, **kwargs)
                    except exceptions as e:
                        self.logger.warning(f"{str(e)}, Retrying in {mdelay} seconds...")
                        time.sleep(mdelay)
                        mtries -= 1
                        mdelay *= backoff
                return func(*args, **kwargs)
            return wrapper_retry
        return decorator_retry

    def check_system_health(self) -> Dict[str, Any]:
        """
        Checks disk space under the data directory and required environment variables.
        """
        health = {
            "status": "healthy",
            "checks": {}
        }

        # 1. Check disk space
        target = self.data_dir if os.path.exists(self.data_dir) else "."
        total, used, free = shutil.disk_usage(target)
        free_gb = free // (2**30)
        health["checks"]["disk_space"] = f"{free_gb} GB free"
        if free_gb < 1:
            health["status"] = "degraded"
            health["checks"]["disk_space"] += " (CRITICAL: Low Space)"

        # 2. Check environment variables
        missing_vars = [v for v in self.required_env if not os.getenv(v)]
        health["checks"]["env_vars"] = "OK" if not missing_vars else f"Missing: {', '.join(missing_vars)}"
        if missing_vars:
            health["status"] = "degraded"

        self.logger.info(f"System Health Check Results: {health}")
        return health

    def process(self, input_data: Any = None) -> Dict[str, Any]:
        """Main entry point for health reporting."""
        return self.check_system_health()

# Singleton-equivalent instance for easy decorator usage
_resilience_instance = None

def get_resilience_agent() -> ResilienceAgent:
    global _resilience_instance
    if _resilience_instance is None:
        _resilience_instance = ResilienceAgent()
    return _resilience_instance

def safe_retry(tries=3, delay=1, backoff=2, exceptions=(Exception,)):
    """Simple wrapper for using the resilience agent's retry as a decorator."""
    return get_resilience_agent().retry(tries=tries, delay=delay, backoff=backoff, exceptions=exceptions)
