"""
LLM Client for local Ollama integration.

Used for intent extraction (strict JSON mode) and free-text answers.
"""

import requests
import structlog

from survey_analytics.core.config import OLLAMA_BASE_URL, OLLAMA_DEFAULT_MODEL, OLLAMA_TIMEOUT_SECONDS

logger = structlog.get_logger()


class OllamaClient:
    """
    Client for local Ollama LLM service.

    Provides connection handling and JSON-mode or plain-text
    generation. Failures are logged and reported as None, never raised.
    """

    def __init__(
        self,
        model: str = OLLAMA_DEFAULT_MODEL,
        base_url: str = OLLAMA_BASE_URL,
        timeout: float = OLLAMA_TIMEOUT_SECONDS,
    ):
        """
        Initialize Ollama client.

        Args:
            model: Model name
            base_url: Ollama service URL
            timeout: Request timeout in seconds
        """
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._connection_checked = False
        self._is_available = False

    def is_available(self) -> bool:
        """
        Check if Ollama service is running.

        The result is remembered for the lifetime of the client.
        """
        if self._connection_checked:
            return self._is_available

        self._is_available = self._check_connection()
        self._connection_checked = True
        return self._is_available

    def _check_connection(self) -> bool:
        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=self.timeout)
            return response.status_code == 200
        except (requests.RequestException, ConnectionError) as e:
            logger.warning(
                "ollama_connection_failed",
                error=str(e),
                base_url=self.base_url,
            )
            return False

    def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        json_mode: bool = True,
        temperature: float | None = None,
    ) -> str | None:
        """
        Generate a completion.

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            json_mode: Ask the model for strict JSON output (default: True)
            temperature: Optional sampling temperature

        Returns:
            Generated text, or None on error/timeout
        """
        if not self.is_available():
            logger.warning("ollama_not_available", model=self.model)
            return None

        payload: dict = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
        }
        if system_prompt:
            payload["system"] = system_prompt
        if json_mode:
            payload["format"] = "json"
        if temperature is not None:
            payload["options"] = {"temperature": temperature}

        try:
            response = requests.post(
                f"{self.base_url}/api/generate",
                json=payload,
                timeout=self.timeout,
            )

            if response.status_code != 200:
                logger.warning(
                    "ollama_generate_failed",
                    status_code=response.status_code,
                    model=self.model,
                )
                return None

            result = response.json()
            return result.get("response")

        except requests.Timeout:
            logger.warning(
                "ollama_timeout",
                timeout_seconds=self.timeout,
                model=self.model,
            )
            return None
        except (requests.RequestException, ValueError) as e:
            logger.warning(
                "ollama_generate_error",
                error=str(e),
                model=self.model,
            )
            return None
