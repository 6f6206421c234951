"""Tests for API Gateway response helpers."""

from __future__ import annotations

import json

from onboarding.exceptions import NotFoundError
from onboarding.models import Tenant
from onboarding.utils.responses import app_error_response
from onboarding.utils.responses import empty_response
from onboarding.utils.responses import error_response
from onboarding.utils.responses import json_response


def test_json_response_defaults_to_any_origin() -> None:
    response = json_response(200, {'ok': True})
    assert response['statusCode'] == 200
    assert response['headers']['Access-Control-Allow-Origin'] == '*'
    assert response['headers']['Content-Type'] == 'application/json'
    assert response['headers']['X-Content-Type-Options'] == 'nosniff'
    assert json.loads(response['body']) == {'ok': True}


def test_cors_origin_restricted_by_environment(monkeypatch) -> None:
    monkeypatch.setenv('CORS_ALLOWED_ORIGINS', 'https://a.example.com,https://b.example.com')

    allowed = json_response(200, {}, event={'headers': {'origin': 'https://b.example.com'}})
    other = json_response(200, {}, event={'headers': {'Origin': 'https://evil.example.com'}})

    assert allowed['headers']['Access-Control-Allow-Origin'] == 'https://b.example.com'
    assert other['headers']['Access-Control-Allow-Origin'] == 'https://a.example.com'


def test_models_are_serialized_with_camel_case() -> None:
    tenant = Tenant(
        id='7c9e6679-7425-40de-944b-e07fc1f90ae7',
        company_name='Acme',
        plan='Premium',
    )
    body = json.loads(json_response(200, [tenant])['body'])
    assert body == [
        {
            'id': '7c9e6679-7425-40de-944b-e07fc1f90ae7',
            'active': True,
            'companyName': 'Acme',
            'plan': 'Premium',
        }
    ]


def test_empty_response_has_cors_and_no_body() -> None:
    response = empty_response()
    assert response['statusCode'] == 200
    assert response['body'] == ''
    assert response['headers']['Access-Control-Allow-Origin'] == '*'


def test_error_responses_use_message_key() -> None:
    assert json.loads(error_response(400, 'request body invalid')['body']) == {
        'message': 'request body invalid'
    }
    response = app_error_response(NotFoundError('Tenant', 'x'))
    assert response['statusCode'] == 404
    assert json.loads(response['body']) == {'message': 'Tenant not found: x'}
