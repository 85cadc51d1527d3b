"""Backup job listing for OADP (OpenShift API for Data Protection)."""

import logging
from datetime import datetime, timezone

from kubernetes import client
from kubernetes.client.rest import ApiException
from pydantic import Field

from fleet_status.core.registry import EndpointHandle
from fleet_status.framework.dispatch import DispatchContext

from .common import ComponentStatus, GroupVersionResource, StatusModel, check_crd_exists, check_namespace_exists

logger = logging.getLogger(__name__)

OADP_NAMESPACE = "openshift-adp"
BACKUP_JOB_SELECTOR = "app.kubernetes.io/component=backup"
VELERO_BACKUPS = GroupVersionResource("velero.io", "v1", "backups")


class BackupJob(StatusModel):
    name: str
    namespace: str
    status: str
    start_time: datetime | None = None
    completion_time: datetime | None = None
    age: str


class BackupJobsList(ComponentStatus):
    jobs: list[BackupJob] = Field(default_factory=list)


def job_status(job) -> str:
    """Completed, Failed, Running or Unknown from the job's pod counters."""
    status = job.status
    if status is None:
        return "Unknown"
    if (status.succeeded or 0) > 0:
        return "Completed"
    if (status.failed or 0) > 0:
        return "Failed"
    if (status.active or 0) > 0:
        return "Running"
    return "Unknown"


def format_age(created: datetime | None, now: datetime | None = None) -> str:
    """Human-readable age such as ``2d3h``, ``4h12m`` or ``35s``."""
    if created is None:
        return "unknown"
    now = now or datetime.now(timezone.utc)
    seconds = max(int((now - created).total_seconds()), 0)
    days, seconds = divmod(seconds, 86400)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    if days:
        return f"{days}d{hours}h"
    if hours:
        return f"{hours}h{minutes}m"
    if minutes:
        return f"{minutes}m{seconds}s"
    return f"{seconds}s"


def convert_job(job, now: datetime | None = None) -> BackupJob:
    status = job.status
    return BackupJob(
        name=job.metadata.name,
        namespace=job.metadata.namespace,
        status=job_status(job),
        start_time=status.start_time if status else None,
        completion_time=status.completion_time if status else None,
        age=format_age(job.metadata.creation_timestamp, now),
    )


def backup_jobs(context: DispatchContext, handle: EndpointHandle) -> BackupJobsList:
    """List backup jobs in the OADP namespace once Velero is present."""
    if not check_namespace_exists(context, handle, OADP_NAMESPACE):
        return BackupJobsList.not_installed("OADP namespace not found")

    if not check_crd_exists(context, handle, VELERO_BACKUPS):
        return BackupJobsList.found(False, "Velero CRDs not found")

    result = BackupJobsList.found(True)
    try:
        jobs = client.BatchV1Api(handle.connection).list_namespaced_job(
            OADP_NAMESPACE,
            label_selector=BACKUP_JOB_SELECTOR,
            _request_timeout=context.request_timeout(),
        )
    except ApiException as e:
        result.message = f"Failed to list jobs: {e.reason or e.status}"
        return result

    result.jobs = [convert_job(job) for job in jobs.items]
    result.message = f"Found {len(result.jobs)} backup jobs"
    return result
