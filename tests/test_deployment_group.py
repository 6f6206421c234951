"""Tests for the CodeDeploy deployment group custom resource."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from onboarding.custom_resources import deployment_group
from onboarding.custom_resources.base import CustomResourceRequest
from onboarding.custom_resources.deployment_group import merge_auto_scaling_groups

PROPERTIES = {
    'ApplicationName': 'workshop-app',
    'DeploymentGroup': 'workshop-group',
    'AutoScalingGroup': 'tenant-asg',
}


def codedeploy_with(groups: list[str]) -> MagicMock:
    client = MagicMock()
    client.get_deployment_group.return_value = {
        'deploymentGroupInfo': {'autoScalingGroups': [{'name': name, 'hook': 'h'} for name in groups]}
    }
    return client


@pytest.mark.parametrize(
    ('existing', 'remove', 'expected'),
    [
        ([], False, ['tenant-asg']),
        (['a', 'b'], False, ['tenant-asg', 'a', 'b']),
        (['a', 'tenant-asg'], False, ['tenant-asg', 'a']),
        (['a', 'tenant-asg', 'b'], True, ['a', 'b']),
        (['a'], True, ['a']),
    ],
)
def test_merge_auto_scaling_groups(existing, remove, expected) -> None:
    assert merge_auto_scaling_groups(existing, 'tenant-asg', remove=remove) == expected


@pytest.mark.parametrize(
    ('request_type', 'expected'),
    [
        ('Create', ['tenant-asg', 'monolith-asg']),
        ('Update', ['tenant-asg', 'monolith-asg']),
        ('Delete', ['monolith-asg']),
    ],
)
def test_update_deployment_group(request_type, expected) -> None:
    client = codedeploy_with(['monolith-asg', 'tenant-asg'] if request_type == 'Delete' else ['monolith-asg'])
    request = CustomResourceRequest(request_type=request_type, properties=dict(PROPERTIES))

    deployment_group.update_deployment_group(request, client=client)

    client.get_deployment_group.assert_called_once_with(
        applicationName='workshop-app',
        deploymentGroupName='workshop-group',
    )
    client.update_deployment_group.assert_called_once_with(
        applicationName='workshop-app',
        currentDeploymentGroupName='workshop-group',
        autoScalingGroups=expected,
    )


def test_handler_reports_missing_property(mocker, custom_resource_event, lambda_context, sent_responses) -> None:
    client = codedeploy_with([])
    mocker.patch.object(deployment_group, 'get_codedeploy_client', return_value=client)
    custom_resource_event['ResourceProperties'].update(
        {'ApplicationName': 'workshop-app', 'DeploymentGroup': 'workshop-group'}
    )

    result = deployment_group.lambda_handler(custom_resource_event, lambda_context)

    assert result['Status'] == 'FAILED'
    assert 'AutoScalingGroup' in sent_responses[0]['Reason']
    client.update_deployment_group.assert_not_called()


def test_handler_success(mocker, custom_resource_event, lambda_context, sent_responses) -> None:
    client = codedeploy_with(['monolith-asg'])
    mocker.patch.object(deployment_group, 'get_codedeploy_client', return_value=client)
    custom_resource_event['ResourceProperties'].update(PROPERTIES)

    result = deployment_group.lambda_handler(custom_resource_event, lambda_context)

    assert result['Status'] == 'SUCCESS'
    assert sent_responses[0]['PhysicalResourceId'] == 'workshop-group-tenant-asg'
