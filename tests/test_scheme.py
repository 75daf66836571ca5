import pytest

from kubeaudit import k8stypes
from kubeaudit.scheme import is_registered, registered_group_versions


@pytest.mark.parametrize(
    "factory",
    [
        k8stypes.new_deployment,
        k8stypes.new_pod,
        k8stypes.new_namespace,
        k8stypes.new_daemon_set,
        k8stypes.new_replication_controller,
        k8stypes.new_stateful_set,
        k8stypes.new_network_policy,
        k8stypes.new_pod_template,
        k8stypes.new_cron_job,
        k8stypes.new_service_account,
    ],
)
def test_constructed_resources_are_registered(factory):
    api_version, kind = k8stypes.api_version_and_kind(factory())
    assert is_registered(api_version, kind) is True


def test_every_supported_type_is_registered():
    for api_version, kind in k8stypes.SUPPORTED_RESOURCE_TYPES:
        assert is_registered(api_version, kind), (api_version, kind)


def test_list_kinds_are_registered():
    assert is_registered("apps/v1", "DeploymentList") is True
    assert is_registered("v1", "List") is True


def test_unknown_kind_or_group_is_not_registered():
    assert is_registered("v1", "UnknownType") is False
    assert is_registered("unknown.example.com/v1", "Pod") is False
    assert is_registered("", "Pod") is False
    assert is_registered("v1", "") is False


def test_custom_resource_definition_is_registered():
    assert is_registered("apiextensions.k8s.io/v1beta1", "CustomResourceDefinition")


def test_registered_group_versions_include_scheme_groups():
    versions = registered_group_versions()
    assert "cert-manager.io/v1alpha2" in versions
    assert "apps/v1beta2" in versions
    assert all(is_registered(v, "WatchEvent") for v in versions)