"""Tests for the RDS bootstrap custom resource."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from onboarding.custom_resources import bootstrap_rds
from onboarding.custom_resources.base import CustomResourceRequest
from onboarding.services.secrets import Credential

SUPER_USER = Credential('postgres', 'super-secret')
APP_USER = Credential('application', 'app-secret')


@pytest.fixture
def database(mocker):
    """Patch connection, secrets, scripts and the hot pool table."""
    connection = MagicMock(name='connection')
    connect = mocker.patch.object(bootstrap_rds, 'connect')
    connect.return_value.__enter__.return_value = connection

    credentials = {'super-secret-arn': SUPER_USER, 'app-secret-arn': APP_USER}
    mocker.patch.object(bootstrap_rds, 'get_credential', side_effect=credentials.__getitem__)

    steps: list = []
    mocker.patch.object(
        bootstrap_rds, 'run_script', side_effect=lambda batch, name: steps.append(name)
    )
    mocker.patch.object(
        bootstrap_rds,
        'run_user_script',
        side_effect=lambda batch, conn, username, password: steps.append(('user.sql', username, password)),
    )
    registry = mocker.patch.object(bootstrap_rds, 'HotPoolRegistry').return_value

    return MagicMock(connect=connect, connection=connection, steps=steps, registry=registry)


def make_request(action: str, request_type: str = 'Create', **overrides) -> CustomResourceRequest:
    properties = {
        'Action': action,
        'SuperUserCredentials': 'super-secret-arn',
        'AppUserCredentials': 'app-secret-arn',
        'Host': 'db.example.com',
        'Database': 'saas_factory_srvls_wrkshp',
        'InstanceId': 'instance-1',
        'TenantId': 'tenant-1',
    }
    properties.update(overrides)
    return CustomResourceRequest(request_type=request_type, properties=properties)


def test_bootstrap_runs_schema_user_and_records_instance(database) -> None:
    bootstrap_rds.bootstrap_database(make_request('BOOTSTRAP'))

    database.connect.assert_called_once_with('db.example.com', 'saas_factory_srvls_wrkshp', SUPER_USER)
    assert database.steps == ['bootstrap.sql', ('user.sql', 'application', 'app-secret')]
    database.registry.register.assert_called_once_with('instance-1', 'db.example.com', 'tenant-1')


@pytest.mark.parametrize('tenant_id', ['MONOLITH', 'monolith'])
def test_bootstrap_loads_sample_data_for_monolith(database, tenant_id) -> None:
    bootstrap_rds.bootstrap_database(make_request('BOOTSTRAP', TenantId=tenant_id))
    assert database.steps[:2] == ['bootstrap.sql', 'data.sql']


def test_bootstrap_without_app_user(database) -> None:
    bootstrap_rds.bootstrap_database(make_request('BOOTSTRAP', AppUserCredentials='', TenantId=''))

    assert database.steps == ['bootstrap.sql']
    database.registry.register.assert_called_once_with('instance-1', 'db.example.com', None)


def test_bootstrap_pool(database) -> None:
    bootstrap_rds.bootstrap_database(make_request('BOOTSTRAP_POOL'))

    assert database.steps == ['bootstrap_pool.sql', ('user.sql', 'application', 'app-secret')]
    database.registry.register.assert_not_called()


def test_add_user(database) -> None:
    bootstrap_rds.bootstrap_database(make_request('ADD_USER'))
    assert database.steps == [('user.sql', 'application', 'app-secret')]


def test_add_user_requires_app_credentials(database) -> None:
    with pytest.raises(ValueError, match='AppUserCredentials'):
        bootstrap_rds.bootstrap_database(make_request('ADD_USER', AppUserCredentials=None))
    database.connect.assert_not_called()


@pytest.mark.parametrize('request_type', ['Update', 'Delete'])
def test_update_and_delete_do_nothing(database, request_type) -> None:
    assert bootstrap_rds.bootstrap_database(make_request('BOOTSTRAP', request_type)) is None
    database.connect.assert_not_called()
    assert database.steps == []


def test_unknown_action(database) -> None:
    with pytest.raises(ValueError, match='Unknown Action'):
        bootstrap_rds.bootstrap_database(make_request('DROP_EVERYTHING'))


def test_handler_reports_failure(database, custom_resource_event, lambda_context, sent_responses) -> None:
    custom_resource_event['ResourceProperties'].update(make_request('UNKNOWN').properties)

    result = bootstrap_rds.lambda_handler(custom_resource_event, lambda_context)

    assert result['Status'] == 'FAILED'
    assert 'Unknown Action UNKNOWN' in sent_responses[0]['Reason']


def test_handler_success(database, custom_resource_event, lambda_context, sent_responses) -> None:
    custom_resource_event['ResourceProperties'].update(make_request('BOOTSTRAP_POOL').properties)

    result = bootstrap_rds.lambda_handler(custom_resource_event, lambda_context)

    assert result['Status'] == 'SUCCESS'
    assert sent_responses[0]['Status'] == 'SUCCESS'
