"""OpenAI client service for the campsite import pipeline."""

import logging
import os
from typing import List, Optional

import requests
from pydantic import BaseModel

from ..utils.env import get_float_env

logger = logging.getLogger(__name__)

# Environment variables
OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"
OPENAI_CLASSIFIER_MODEL = os.environ.get("OPENAI_CLASSIFIER_MODEL", "gpt-4o-mini")
OPENAI_TIMEOUT_SECONDS = get_float_env("OPENAI_TIMEOUT_SECONDS", 10.0)


class OpenAIAPIError(Exception):
    """Raised when the OpenAI API answers with a non-200 status or an unexpected body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ChatMessage(BaseModel):
    """OpenAI Chat Message model."""

    role: str
    content: str


class OpenAIClient:
    """Client for interacting with OpenAI API."""

    def __init__(self, api_key: str, timeout: Optional[float] = None):
        """Initialize the OpenAI client.

        Args:
            api_key: OpenAI API key
            timeout: Request timeout in seconds. Defaults to OPENAI_TIMEOUT_SECONDS.
        """
        if not api_key:
            raise ValueError("OpenAI API key must not be empty")
        self.api_key = api_key
        self.api_url = OPENAI_API_URL
        self.timeout = timeout if timeout is not None else OPENAI_TIMEOUT_SECONDS

    def generate_completion(
        self,
        messages: List[ChatMessage],
        model: str = OPENAI_CLASSIFIER_MODEL,
        temperature: float = 0.0,
        max_tokens: int = 200,
    ) -> str:
        """Generate a completion using OpenAI's chat API.

        Args:
            messages: List of messages to send to the API
            model: Model to use for completion
            temperature: Sampling temperature (0-1)
            max_tokens: Maximum number of tokens to generate

        Returns:
            Generated text from the API

        Raises:
            OpenAIAPIError: If the API answers with an error status or an unexpected body
            requests.RequestException: On connection errors and timeouts
        """
        headers = {"Content-Type": "application/json", "Authorization": f"Bearer {self.api_key}"}

        payload = {
            "model": model,
            "messages": [msg.model_dump() for msg in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        logger.info(f"Sending request to OpenAI API with model {model}")

        response = requests.post(
            self.api_url,
            headers=headers,
            json=payload,
            timeout=self.timeout,
        )

        if response.status_code != 200:
            error_message = f"OpenAI API error: {response.status_code} {response.text}"
            logger.error(error_message)
            raise OpenAIAPIError(error_message, status_code=response.status_code)

        try:
            response_data = response.json()
            generated_text: str = response_data["choices"][0]["message"]["content"].strip()
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise OpenAIAPIError(f"Unexpected OpenAI response body: {e}", status_code=200) from e

        logger.info(f"Successfully generated completion with {len(generated_text)} characters")

        return generated_text
