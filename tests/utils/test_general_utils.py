"""Unit tests for credential resolution using pytest and moto."""

import json
import os

import boto3
import pytest
from moto import mock_aws

from campsite_ingest.services.openai_client import OpenAIClient
from campsite_ingest.utils.aws import get_api_key_from_secret
from campsite_ingest.utils.general_utils import get_openai_api_key, get_openai_client


@pytest.fixture(scope="function")
def aws_credentials():
    """Mocked AWS Credentials for boto3."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture(scope="function")
def secretsmanager(aws_credentials):
    """Secrets Manager client."""
    with mock_aws():
        yield boto3.client("secretsmanager", region_name="us-east-1")


@pytest.fixture(autouse=True)
def clear_openai_env(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY_SECRET_NAME", raising=False)


def test_api_key_from_environment(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "env-key")

    assert get_openai_api_key() == "env-key"


def test_no_credential_configured():
    assert get_openai_api_key() is None
    assert get_openai_client() is None


def test_api_key_from_json_secret(secretsmanager, monkeypatch):
    secretsmanager.create_secret(
        Name="campsite/openai-api-key", SecretString=json.dumps({"OPENAI_API_KEY": "json-key"})
    )
    monkeypatch.setenv("OPENAI_API_KEY_SECRET_NAME", "campsite/openai-api-key")

    assert get_openai_api_key() == "json-key"
    client = get_openai_client()
    assert isinstance(client, OpenAIClient)
    assert client.api_key == "json-key"


def test_api_key_from_plain_secret(secretsmanager):
    secretsmanager.create_secret(Name="plain-secret", SecretString="plain-key")

    assert get_api_key_from_secret("plain-secret", "OPENAI_API_KEY") == "plain-key"


def test_json_secret_without_key(secretsmanager):
    secretsmanager.create_secret(Name="other-secret", SecretString=json.dumps({"OTHER": "x"}))

    assert get_api_key_from_secret("other-secret", "OPENAI_API_KEY") is None


def test_missing_secret_disables_ai(secretsmanager, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY_SECRET_NAME", "does-not-exist")

    assert get_openai_api_key() is None
    assert get_openai_client() is None
