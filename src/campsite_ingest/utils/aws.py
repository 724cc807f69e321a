"""AWS utility functions for the campsite import pipeline."""
import json
import logging
from typing import Optional

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


def get_secret(secret_name: str, client=None) -> Optional[str]:
    """Retrieve a secret from AWS Secrets Manager.

    Args:
        secret_name: Name of the secret to retrieve
        client: Optional boto3 secrets client

    Returns:
        The secret string, or None for binary secrets

    Raises:
        ClientError: If there's an error retrieving the secret
    """
    secrets_client = client or boto3.client("secretsmanager")

    try:
        response = secrets_client.get_secret_value(SecretId=secret_name)
    except ClientError:
        logger.exception(f"Error retrieving secret {secret_name}")
        raise
    return response.get("SecretString")


def get_api_key_from_secret(secret_name: str, key_name: str, client=None) -> Optional[str]:
    """Get an API key from a secret, supporting both direct and JSON formats.

    Args:
        secret_name: Name of the secret in Secrets Manager
        key_name: Name of the key in the JSON object (if applicable)
        client: Optional boto3 secrets client

    Returns:
        API key string or None if not found
    """
    secret = get_secret(secret_name, client=client)
    if not secret:
        return None

    try:
        secret_dict = json.loads(secret)
    except json.JSONDecodeError:
        return secret
    if not isinstance(secret_dict, dict):
        return secret
    return secret_dict.get(key_name)
