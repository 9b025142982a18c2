import os
import re
import time
import threading
from typing import Type, TypeVar, Optional
from pydantic import BaseModel
from litellm import completion
import json
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_MODEL = "gpt-4o"

class LLMInterface:
    _local_semaphore = threading.Semaphore(1) # Serialize local LLM calls to prevent timeouts

    def __init__(self, model_name: Optional[str] = None, api_key: Optional[str] = None, max_retries: int = 3):
        self.model_name = model_name or os.getenv("AUDIOCOMIC_MODEL", DEFAULT_MODEL)
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.max_retries = max_retries

    @property
    def is_local(self) -> bool:
        return "ollama" in self.model_name or "local" in self.model_name

    def _extract_json(self, text: str) -> str:
        """
        Finds the broadest {...} or [...] block in an LLM response.
        """
        if not text:
            return "{}"

        # 1. Try markdown block first
        json_match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
        if json_match:
            candidate = json_match.group(1).strip()
            if candidate: return candidate

        # 2. Outermost curly braces / square brackets, whichever opens first
        start_curly = text.find('{')
        end_curly = text.rfind('}')
        start_bracket = text.find('[')
        end_bracket = text.rfind(']')

        if start_curly != -1 and start_bracket != -1:
            if start_curly < start_bracket:
                if end_curly > start_curly:
                    return text[start_curly:end_curly+1].strip()
            else:
                if end_bracket > start_bracket:
                    return text[start_bracket:end_bracket+1].strip()

        if start_curly != -1 and end_curly > start_curly:
            return text[start_curly:end_curly+1].strip()

        if start_bracket != -1 and end_bracket > start_bracket:
            return text[start_bracket:end_bracket+1].strip()

        # 3. Fallback: Clean string and hope for the best
        cleaned = text.strip()
        return cleaned if cleaned else "{}"

    def _repair_json(self, json_content: str) -> str:
        # Trailing commas are the most common local-model mistake
        return re.sub(r',\s*([\]}])', r'\1', json_content)

    def is_healthy(self) -> bool:
        """
        Checks if the LLM backend is reachable.
        Only local (Ollama) backends are probed; cloud models count as healthy.
        """
        if self.is_local:
            import requests
            for host in ["localhost", "127.0.0.1"]:
                try:
                    resp = requests.get(f"http://{host}:11434/api/tags", timeout=2)
                    if resp.status_code == 200:
                        return True
                except requests.RequestException:
                    continue
            return False
        return True

    def generate_structured_output(self, prompt: str, schema: Type[T], system_prompt: str = "You are a helpful assistant. Respond ONLY with valid JSON.") -> T:
        """
        Generates a response from the LLM and validates it against `schema`.
        Retries on empty, unparseable or invalid responses; the last error is re-raised.
        """
        last_error = None
        enhanced_system = f"{system_prompt}\n\nSchema: {json.dumps(schema.model_json_schema(), indent=2)}"

        for attempt in range(self.max_retries):
            with LLMInterface._local_semaphore if self.is_local else threading.Lock():
                try:
                    logger.info(f"LLM Request (Attempt {attempt + 1}/{self.max_retries}) using {self.model_name}...")

                    completion_kwargs = {
                        "model": self.model_name,
                        "messages": [
                            {"role": "system", "content": enhanced_system},
                            {"role": "user", "content": prompt}
                        ],
                        "api_key": self.api_key,
                        "timeout": 600
                    }
                    if self.is_local:
                        completion_kwargs["keep_alive"] = "20m"

                    response = completion(**completion_kwargs)

                    content = response.choices[0].message.content
                    if not content or not content.strip():
                        raise ValueError("Empty response")

                    data = json.loads(self._repair_json(self._extract_json(content)))
                    return schema.model_validate(data)

                except Exception as e:
                    last_error = e
                    logger.warning(f"Attempt {attempt + 1} failed: {str(e)}")

                    if attempt < self.max_retries - 1:
                        is_conn_error = "Connection refused" in str(e) or "APIConnectionError" in str(e)
                        if is_conn_error:
                            logger.info("⏳ Connection refused. Service might be down or restarting. Waiting 5s...")
                        time.sleep(5 if is_conn_error else 1)

        if last_error:
            raise last_error
        raise ValueError(f"LLM request failed after {self.max_retries} attempts for unknown reasons.")
