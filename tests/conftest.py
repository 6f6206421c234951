"""Pytest configuration and fixtures for the onboarding handlers.

This module provides shared fixtures: API Gateway and CloudFormation
events, a fake Lambda context, and moto-backed DynamoDB tables.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Generator
from uuid import uuid4

import pytest

# Add backend source to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / 'backend' / 'src'))

TENANT_TABLE = 'test-tenants'
RDS_CLUSTER_TABLE = 'test-rds-clusters'
RDS_HOT_POOL_TABLE = 'test-rds-hot-pool'


# --- Environment Fixtures ---


@pytest.fixture(autouse=True)
def aws_environment(monkeypatch) -> Generator:
    """Point boto3 at fake credentials and reset module caches."""
    from onboarding.config import clear_settings_cache
    from onboarding.services.aws_clients import clear_client_cache
    from onboarding.services.secrets import clear_secret_cache

    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')
    monkeypatch.setenv('TENANT_TABLE', TENANT_TABLE)
    monkeypatch.setenv('RDS_CLUSTER_TABLE', RDS_CLUSTER_TABLE)
    monkeypatch.setenv('RDS_HOT_POOL_TABLE', RDS_HOT_POOL_TABLE)
    monkeypatch.delenv('CORS_ALLOWED_ORIGINS', raising=False)
    monkeypatch.delenv('DATABASE_SSLMODE', raising=False)

    clear_client_cache()
    clear_settings_cache()
    clear_secret_cache()
    yield
    clear_client_cache()
    clear_settings_cache()
    clear_secret_cache()


@pytest.fixture
def dynamodb() -> Generator:
    """Spin up in-process DynamoDB tables via moto."""
    from moto import mock_aws

    from onboarding.services.aws_clients import clear_client_cache
    from onboarding.services.aws_clients import get_dynamodb_resource

    with mock_aws():
        clear_client_cache()
        resource = get_dynamodb_resource()
        for name, key in (
            (TENANT_TABLE, 'id'),
            (RDS_CLUSTER_TABLE, 'DBClusterIdentifier'),
            (RDS_HOT_POOL_TABLE, 'instance'),
        ):
            resource.create_table(
                TableName=name,
                KeySchema=[{'AttributeName': key, 'KeyType': 'HASH'}],
                AttributeDefinitions=[{'AttributeName': key, 'AttributeType': 'S'}],
                BillingMode='PAY_PER_REQUEST',
            )
        yield resource
        clear_client_cache()


# --- Lambda Fixtures ---


class FakeLambdaContext:
    """Minimal stand-in for the Lambda context object."""

    def __init__(self, remaining_ms: int = 30000):
        self.aws_request_id = str(uuid4())
        self.log_stream_name = '2024/01/01/[$LATEST]abcdef'
        self.function_name = 'test-function'
        self._remaining_ms = remaining_ms

    def get_remaining_time_in_millis(self) -> int:
        return self._remaining_ms


@pytest.fixture
def lambda_context() -> FakeLambdaContext:
    return FakeLambdaContext()


# --- API Event Fixtures ---


@pytest.fixture
def api_gateway_event() -> dict:
    """Base API Gateway event structure."""
    return {
        'httpMethod': 'GET',
        'path': '/tenants',
        'queryStringParameters': None,
        'headers': {},
        'requestContext': {
            'requestId': str(uuid4()),
        },
        'body': None,
        'isBase64Encoded': False,
    }


def make_api_event(method: str, path: str, body=None) -> dict:
    """Build an API Gateway proxy event with an optional JSON body."""
    return {
        'httpMethod': method,
        'path': path,
        'queryStringParameters': None,
        'headers': {'Content-Type': 'application/json'},
        'requestContext': {'requestId': str(uuid4())},
        'body': json.dumps(body) if body is not None else None,
        'isBase64Encoded': False,
    }


@pytest.fixture
def custom_resource_event() -> dict:
    """Base CloudFormation custom resource event."""
    return {
        'RequestType': 'Create',
        'ResponseURL': 'https://cloudformation-custom-resource-response-useast1.s3.amazonaws.com/signed',
        'StackId': 'arn:aws:cloudformation:us-east-1:123456789012:stack/workshop/guid',
        'RequestId': str(uuid4()),
        'LogicalResourceId': 'BootstrapDatabase',
        'ResourceType': 'Custom::BootstrapDatabase',
        'ResourceProperties': {
            'ServiceToken': 'arn:aws:lambda:us-east-1:123456789012:function:bootstrap',
        },
    }


@pytest.fixture
def sent_responses(mocker) -> list:
    """Capture CloudFormation responses instead of sending them."""
    sent: list = []

    def _capture(event, context, status, data=None, physical_resource_id=None, reason=None):
        sent.append(
            {
                'Status': status,
                'Data': dict(data or {}),
                'PhysicalResourceId': physical_resource_id,
                'Reason': reason,
            }
        )

    mocker.patch('onboarding.custom_resources.base.send_cfn_response', side_effect=_capture)
    return sent


# --- Utility Functions ---


def response_json(response: dict):
    """Decode the JSON body of an API Gateway proxy response."""
    return json.loads(response['body']) if response['body'] else None
