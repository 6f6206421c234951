"""Tests for the DynamoDB tenant repository."""

from __future__ import annotations

import pytest

from onboarding.db.tenants import TenantRepository
from onboarding.exceptions import NotFoundError
from onboarding.models import Tenant

TENANT_ID = '6f1c2a9e-3b4d-4e5f-8a9b-0c1d2e3f4a5b'


@pytest.fixture
def repository(dynamodb) -> TenantRepository:
    return TenantRepository()


def test_insert_assigns_id(repository) -> None:
    stored = repository.insert(Tenant(company_name='Acme', plan='Standard'))

    assert stored.id
    assert repository.get_by_id(stored.id) == stored


def test_insert_keeps_given_id(repository) -> None:
    stored = repository.insert(Tenant(id=TENANT_ID, company_name='Acme'))
    assert stored.id == TENANT_ID


def test_items_use_snake_case_attributes(repository, dynamodb) -> None:
    repository.insert(Tenant(id=TENANT_ID, company_name='Acme', user_pool='pool-1'))

    item = dynamodb.Table('test-tenants').get_item(Key={'id': TENANT_ID})['Item']

    assert item == {
        'id': TENANT_ID,
        'active': True,
        'company_name': 'Acme',
        'user_pool': 'pool-1',
    }


def test_get_missing_returns_none(repository) -> None:
    assert repository.get_by_id(TENANT_ID) is None


def test_get_all_returns_every_tenant(repository) -> None:
    for index in range(3):
        repository.insert(Tenant(company_name=f'Company {index}'))

    names = sorted(tenant.company_name for tenant in repository.get_all())

    assert names == ['Company 0', 'Company 1', 'Company 2']


def test_get_all_pages(mocker) -> None:
    table = mocker.MagicMock()
    table.scan.side_effect = [
        {'Items': [{'id': TENANT_ID, 'company_name': 'A'}], 'LastEvaluatedKey': {'id': TENANT_ID}},
        {'Items': [{'id': '7c9e6679-7425-40de-944b-e07fc1f90ae7', 'active': False}]},
    ]

    tenants = TenantRepository(table=table).get_all()

    assert [tenant.company_name for tenant in tenants] == ['A', None]
    assert tenants[1].active is False
    assert table.scan.call_args_list[1].kwargs == {'ExclusiveStartKey': {'id': TENANT_ID}}


def test_update_changes_fields(repository) -> None:
    repository.insert(Tenant(id=TENANT_ID, company_name='Acme', plan='Standard', database='db-1'))

    updated = repository.update(
        Tenant(id=TENANT_ID, company_name='Acme Corp', plan=None, active=False)
    )

    assert updated.company_name == 'Acme Corp'
    assert updated.plan is None
    assert updated.active is False
    assert updated.database == 'db-1'


def test_update_missing_tenant(repository) -> None:
    with pytest.raises(NotFoundError):
        repository.update(Tenant(id=TENANT_ID, company_name='Ghost'))


def test_update_database_and_user_pool(repository) -> None:
    repository.insert(Tenant(id=TENANT_ID, company_name='Acme'))

    repository.update_database(Tenant(id=TENANT_ID, database='db.example.com'))
    updated = repository.update_user_pool(Tenant(id=TENANT_ID, user_pool='us-east-1_abc'))

    assert updated.database == 'db.example.com'
    assert updated.user_pool == 'us-east-1_abc'
    assert updated.company_name == 'Acme'


def test_delete(repository) -> None:
    repository.insert(Tenant(id=TENANT_ID))
    repository.delete(TENANT_ID)
    assert repository.get_by_id(TENANT_ID) is None

    with pytest.raises(NotFoundError):
        repository.delete(TENANT_ID)
