import logging
import os
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..services.openai_client import OpenAIClient
from ..utils.aws import get_api_key_from_secret

logger = logging.getLogger(__name__)


def get_openai_api_key() -> Optional[str]:
    """Resolve the OpenAI API key used for AI-assisted classification.

    OPENAI_API_KEY wins; otherwise the key is read from the Secrets Manager
    secret named by OPENAI_API_KEY_SECRET_NAME.

    Returns:
        The API key, or None when no credential is configured or it cannot be read.
    """
    api_key = os.environ.get("OPENAI_API_KEY")
    if api_key:
        return api_key

    secret_name = os.environ.get("OPENAI_API_KEY_SECRET_NAME")
    if not secret_name:
        return None

    try:
        return get_api_key_from_secret(secret_name, "OPENAI_API_KEY")
    except (ClientError, BotoCoreError) as e:
        logger.warning(f"Could not read OpenAI API key from secret {secret_name}: {e}")
        return None


def get_openai_client() -> Optional[OpenAIClient]:
    """Get an OpenAI client, or None when AI classification is not configured."""
    api_key = get_openai_api_key()
    if not api_key:
        logger.warning(
            "OPENAI_API_KEY or OPENAI_API_KEY_SECRET_NAME not set - "
            "AI classification disabled, using keyword-based only"
        )
        return None
    return OpenAIClient(api_key)
