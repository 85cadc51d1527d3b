"""
Tests for storage, backup and platform status checks.

Kubernetes API classes are patched; API objects are simple namespaces with
the attributes the checks read.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from kubernetes.client.rest import ApiException

from fleet_status.framework.dispatch import serialize_payload
from fleet_status.services.backup import backup_jobs, convert_job, format_age, job_status
from fleet_status.services.platform import (
    cas_status,
    dr_status,
    gdp_status,
    hcp_status,
    observability_status,
    serviceability_status,
    virtualization_status,
)
from fleet_status.services.storage import data_foundation_status, storage_summary


def storage_class(name, provisioner, default=False):
    annotations = {"storageclass.kubernetes.io/is-default-class": "true"} if default else None
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name, annotations=annotations), provisioner=provisioner
    )


def pvc(phase):
    return SimpleNamespace(status=SimpleNamespace(phase=phase))


def job(name, succeeded=None, failed=None, active=None, created=None):
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name, namespace="openshift-adp", creation_timestamp=created),
        status=SimpleNamespace(
            succeeded=succeeded,
            failed=failed,
            active=active,
            start_time=created,
            completion_time=None,
        ),
    )


@pytest.fixture
def common_client():
    with patch("fleet_status.services.common.client") as mock_client:
        yield mock_client


def set_namespaces(common_client, present):
    """Make read_namespace succeed only for ``present`` namespaces."""

    def read_namespace(name, **kwargs):
        if name not in present:
            raise ApiException(status=404)
        return SimpleNamespace(metadata=SimpleNamespace(name=name))

    common_client.CoreV1Api.return_value.read_namespace.side_effect = read_namespace


def set_served(handle, resources):
    """Make API discovery serve ``resources`` (group/version/resource) only."""

    def call_api(path, method, path_params=None, **kwargs):
        group_version = f"{path_params['group']}/{path_params['version']}"
        names = [name for gv, name in resources if gv == group_version]
        if not names:
            raise ApiException(status=404)
        return {"resources": [{"name": name} for name in names]}

    handle.connection.call_api.side_effect = call_api


class TestStorageSummary:
    """Test the storage summary check."""

    def test_summarizes_classes_and_claims(self, handle, dispatch_context):
        with patch("fleet_status.services.storage.client") as k8s:
            k8s.StorageV1Api.return_value.list_storage_class.return_value.items = [
                storage_class("gp3", "ebs.csi.aws.com", default=True),
                storage_class("ocs-storagecluster-ceph-rbd", "openshift-storage.rbd.csi.ceph.com"),
            ]
            k8s.CoreV1Api.return_value.list_persistent_volume_claim_for_all_namespaces.return_value.items = [
                pvc("Bound"),
                pvc("Bound"),
                pvc("Pending"),
            ]

            data = serialize_payload(storage_summary(dispatch_context, handle))

        assert data["defaultStorageClass"] == "gp3"
        assert data["odfDetected"] is True
        assert data["pvcs"] == {"total": 3, "bound": 2, "pending": 1, "lost": 0}
        assert data["storageClasses"][0] == {
            "name": "gp3",
            "provisioner": "ebs.csi.aws.com",
            "isDefault": True,
            "odf": False,
        }

    def test_api_errors_propagate(self, handle, dispatch_context):
        with patch("fleet_status.services.storage.client") as k8s:
            k8s.StorageV1Api.return_value.list_storage_class.side_effect = ApiException(status=403)
            with pytest.raises(ApiException):
                storage_summary(dispatch_context, handle)


class TestDataFoundationStatus:
    """Test ODF detection."""

    def test_not_installed(self, common_client, handle, dispatch_context):
        set_namespaces(common_client, set())

        status = data_foundation_status(dispatch_context, handle)

        assert not status.installed
        assert status.message == "ODF/OCS namespace not found"

    def test_installed_and_ready(self, common_client, handle, dispatch_context):
        set_namespaces(common_client, {"openshift-data-foundation"})
        common_client.CoreV1Api.return_value.list_namespaced_pod.return_value.items = [object()]
        set_served(handle, [("ceph.rook.io/v1", "cephclusters")])

        with patch("fleet_status.services.storage.client") as k8s:
            k8s.StorageV1Api.return_value.list_storage_class.return_value.items = [
                storage_class("gp3", "ebs.csi.aws.com"),
                storage_class("odf-fs", "openshift-storage.cephfs.csi.ceph.com"),
            ]
            status = data_foundation_status(dispatch_context, handle)

        assert status.installed and status.ready
        assert status.namespace == "openshift-data-foundation"
        assert status.message == "ODF operator running with 1 pods"
        assert status.storage_classes == ["odf-fs"]
        assert status.ceph_health is not None

    def test_operator_missing(self, common_client, handle, dispatch_context):
        set_namespaces(common_client, {"openshift-storage"})
        common_client.CoreV1Api.return_value.list_namespaced_pod.return_value.items = []
        set_served(handle, [])

        with patch("fleet_status.services.storage.client"):
            status = data_foundation_status(dispatch_context, handle)

        assert status.installed and not status.ready
        assert status.ceph_health is None


class TestBackupJobs:
    """Test OADP backup job listing."""

    def test_oadp_missing(self, common_client, handle, dispatch_context):
        set_namespaces(common_client, set())
        status = backup_jobs(dispatch_context, handle)
        assert not status.installed
        assert status.message == "OADP namespace not found"

    def test_velero_missing(self, common_client, handle, dispatch_context):
        set_namespaces(common_client, {"openshift-adp"})
        set_served(handle, [])

        status = backup_jobs(dispatch_context, handle)

        assert status.installed and not status.ready
        assert status.message == "Velero CRDs not found"

    def test_lists_jobs(self, common_client, handle, dispatch_context):
        set_namespaces(common_client, {"openshift-adp"})
        set_served(handle, [("velero.io/v1", "backups")])
        created = datetime.now(timezone.utc) - timedelta(hours=2)

        with patch("fleet_status.services.backup.client") as k8s:
            k8s.BatchV1Api.return_value.list_namespaced_job.return_value.items = [
                job("nightly", succeeded=1, created=created),
                job("hourly", active=1, created=created),
            ]
            status = backup_jobs(dispatch_context, handle)

        call = k8s.BatchV1Api.return_value.list_namespaced_job.call_args
        assert call.kwargs["label_selector"] == "app.kubernetes.io/component=backup"
        assert status.ready
        assert status.message == "Found 2 backup jobs"
        assert [j.status for j in status.jobs] == ["Completed", "Running"]
        assert status.jobs[0].age.startswith("2h")

    def test_job_listing_failure_is_reported(self, common_client, handle, dispatch_context):
        set_namespaces(common_client, {"openshift-adp"})
        set_served(handle, [("velero.io/v1", "backups")])

        with patch("fleet_status.services.backup.client") as k8s:
            k8s.BatchV1Api.return_value.list_namespaced_job.side_effect = ApiException(
                status=403, reason="Forbidden"
            )
            status = backup_jobs(dispatch_context, handle)

        assert status.message == "Failed to list jobs: Forbidden"
        assert status.jobs == []

    @pytest.mark.parametrize(
        "counters,expected",
        [
            ({"succeeded": 1, "failed": 1}, "Completed"),
            ({"failed": 2}, "Failed"),
            ({"active": 1}, "Running"),
            ({}, "Unknown"),
        ],
    )
    def test_job_status(self, counters, expected):
        assert job_status(job("j", **counters)) == expected

    def test_format_age(self):
        now = datetime(2024, 1, 3, 12, 0, 0, tzinfo=timezone.utc)
        assert format_age(now - timedelta(days=1, hours=3), now) == "1d3h"
        assert format_age(now - timedelta(minutes=5, seconds=7), now) == "5m7s"
        assert format_age(now - timedelta(seconds=42), now) == "42s"
        assert format_age(None, now) == "unknown"

    def test_convert_job_serializes_times(self):
        created = datetime(2024, 1, 3, 10, 0, 0, tzinfo=timezone.utc)
        converted = convert_job(job("nightly", succeeded=1, created=created), now=created)

        data = serialize_payload(converted)

        assert data["startTime"] == "2024-01-03T10:00:00Z"
        assert "completionTime" not in data
        assert data["age"] == "0s"


class TestPlatformChecks:
    """Test the namespace and CRD based platform probes."""

    def test_gdp_found(self, common_client, handle, dispatch_context):
        set_namespaces(common_client, {"ibm-gdp"})
        status = gdp_status(dispatch_context, handle)
        assert status.installed and status.ready
        assert status.message == "GDP found in namespace: ibm-gdp"

    def test_cas_missing(self, common_client, handle, dispatch_context):
        set_namespaces(common_client, set())
        status = cas_status(dispatch_context, handle)
        assert status.message == "Content Aware Storage not found"

    def test_dr_detected_by_any_crd(self, handle, dispatch_context):
        set_served(handle, [("ramendr.openshift.io/v1alpha1", "drclusters")])
        assert dr_status(dispatch_context, handle).installed

    def test_dr_missing(self, handle, dispatch_context):
        set_served(handle, [])
        assert dr_status(dispatch_context, handle).message == "DR components not found"

    def test_serviceability(self, common_client, handle, dispatch_context):
        set_namespaces(common_client, {"openshift-logging"})

        data = serialize_payload(serviceability_status(dispatch_context, handle))

        assert data["mustGatherAvailable"] is False
        assert data["loggingConfigured"] is True
        assert data["namespace"] == "openshift-logging"

    def test_observability_otel_only(self, common_client, handle, dispatch_context):
        set_namespaces(common_client, set())
        set_served(handle, [("opentelemetry.io/v1alpha1", "opentelemetrycollectors")])

        status = observability_status(dispatch_context, handle)

        assert status.installed
        assert status.otel_installed and not status.prometheus_installed

    def test_observability_missing(self, common_client, handle, dispatch_context):
        set_namespaces(common_client, set())
        set_served(handle, [])
        assert not observability_status(dispatch_context, handle).installed

    def test_virtualization_counts_vms(self, common_client, handle, dispatch_context):
        set_namespaces(common_client, {"openshift-cnv"})
        set_served(handle, [("kubevirt.io/v1", "virtualmachines")])
        common_client.CustomObjectsApi.return_value.list_cluster_custom_object.return_value = {
            "items": [{}, {}]
        }

        status = virtualization_status(dispatch_context, handle)

        assert status.ready and status.kubevirt_installed
        assert status.vm_count == 2

    def test_virtualization_without_crds(self, common_client, handle, dispatch_context):
        set_namespaces(common_client, {"kubevirt"})
        set_served(handle, [])

        status = virtualization_status(dispatch_context, handle)

        assert status.installed and not status.ready
        assert status.message == "KubeVirt namespace found but CRDs not detected"

    def test_hcp_counts_hosted_clusters(self, common_client, handle, dispatch_context):
        set_namespaces(common_client, {"hypershift"})
        set_served(handle, [("hypershift.openshift.io/v1beta1", "hostedclusters")])
        common_client.CustomObjectsApi.return_value.list_cluster_custom_object.side_effect = (
            ApiException(status=403)
        )

        status = hcp_status(dispatch_context, handle)

        assert status.hypershift_installed
        assert status.hosted_cluster_count == 0

    def test_hcp_missing(self, common_client, handle, dispatch_context):
        set_namespaces(common_client, set())
        assert hcp_status(dispatch_context, handle).message == "HyperShift/HCP not found"
