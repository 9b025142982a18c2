from abc import ABC
from typing import Any, Dict
from pydantic import BaseModel
import logging

# Configure basic logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

class BaseAgent(ABC):
    """
    Abstract base class for all agents in the audio comic pipeline.
    """
    def __init__(self, agent_name: str, config: Dict[str, Any] = None):
        self.name = agent_name
        self.config = config or {}
        self.logger = logging.getLogger(f"Agent.{agent_name}")

    def process(self, input_data: Any, **kwargs) -> Any:
        # To be implemented by subclasses
        raise NotImplementedError(f"{type(self).__name__} does not implement process()")

    def critique(self, input_data: Any, result: Any) -> Dict[str, Any]:
        """
        Default critique method that passes by default.
        Subclasses can override this to flag questionable output.
        """
        return {"passed": True, "feedback": "No critique implementation; skipping."}

    def validate_output(self, data: Any, expected_schema: Any) -> Any:
        """
        Validates that the data matches the expected Pydantic schema.
        Raises ValidationError if invalid.
        """
        if isinstance(expected_schema, type) and issubclass(expected_schema, BaseModel):
            if isinstance(data, dict):
                return expected_schema.model_validate(data)
            elif isinstance(data, expected_schema):
                return data
            else:
                raise ValueError(f"Data type {type(data)} does not match schema {expected_schema}")
        return data

    def run(self, input_data: Any, expected_schema: Any = None, retries: int = 1, **kwargs) -> Any:
        """
        Orchestrates the process and critique loop with strict validation.
        Deterministic agents run once; LLM-backed agents pass retries > 1.
        """
        self.logger.info(f"Starting execution for {self.name}...")
        try:
            # 1. Process
            from audiocomic.agents.infrastructure.resilience_agent import safe_retry

            @safe_retry(tries=retries, delay=1, backoff=2)
            def inner_process():
                return self.process(input_data, **kwargs)

            result = inner_process()

            # 2. Validation
            if expected_schema:
                try:
                    result = self.validate_output(result, expected_schema)
                except Exception as e:
                    self.logger.error(f"Schema Validation Failed in {self.name}: {e}")
                    raise

            # 3. Critique
            critique_result = self.critique(input_data, result)
            if not critique_result.get("passed", True):
                self.logger.warning(f"Critique failed validation: {critique_result.get('feedback')}")

            self.logger.info(f"Execution handling complete for {self.name}.")
            return result
        except Exception as e:
            self.logger.error(f"Error in {self.name}: {str(e)}")
            raise
