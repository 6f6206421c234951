"""Tests for structured logging helpers."""

from __future__ import annotations

import json
import logging
from types import SimpleNamespace

from onboarding.utils import logging as log_utils
from onboarding.utils.logging import StructuredLogFormatter
from onboarding.utils.logging import mask_email


def _record(message: str, level: int = logging.INFO, extra=None) -> logging.LogRecord:
    logger = logging.getLogger('test')
    return logger.makeRecord(
        'test', level, __file__, 10, message, (), None,
        extra={'extra': extra} if extra else None,
    )


def test_mask_email() -> None:
    assert mask_email('john.doe@example.com') == 'jo***@***.com'
    assert mask_email('not-an-email') == '***'


def test_formatter_includes_request_and_tenant_context() -> None:
    log_utils.set_request_context({'requestContext': {'requestId': 'req-1'}})
    log_utils.set_tenant_context('tenant-1')
    try:
        output = json.loads(StructuredLogFormatter().format(_record('hello', extra={'k': 'v'})))
    finally:
        log_utils.clear_request_context()

    assert output['message'] == 'hello'
    assert output['request_id'] == 'req-1'
    assert output['tenant_id'] == 'tenant-1'
    assert output['extra'] == {'k': 'v'}
    assert 'source' not in output


def test_formatter_adds_source_for_warnings() -> None:
    output = json.loads(StructuredLogFormatter().format(_record('careful', logging.WARNING)))
    assert output['level'] == 'WARNING'
    assert output['source']['line'] == 10


def test_request_context_falls_back_to_lambda_context() -> None:
    log_utils.set_request_context({}, SimpleNamespace(aws_request_id='ctx-1'))
    try:
        assert log_utils.request_id.get() == 'ctx-1'
    finally:
        log_utils.clear_request_context()


def test_custom_resource_event_logged_without_response_url(mocker, custom_resource_event) -> None:
    logger = mocker.MagicMock()
    custom_resource_event['ResourceProperties']['Host'] = 'db.example.com'

    log_utils.log_custom_resource_event(logger, custom_resource_event)

    logged = json.dumps(logger.info.call_args.kwargs['extra'])
    assert 'ResponseURL' not in logged
    assert 'signed' not in logged
    assert logger.info.call_args.kwargs['extra']['properties'] == ['Host']


def test_context_logger_nests_extra() -> None:
    adapter = log_utils.get_logger('test.adapter', component='tenants')
    msg, kwargs = adapter.process('message', {'extra': {'tenant': 'abc'}})
    assert kwargs['extra'] == {'extra': {'component': 'tenants', 'tenant': 'abc'}}
