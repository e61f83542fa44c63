import logging
from dataclasses import dataclass, field
from datetime import timezone
from typing import List, Optional

from azure.core.exceptions import AzureError
from azure.mgmt.monitor import MonitorManagementClient

from .models import ActivityRecord
from .resource_ids import parse_resource_id

logger = logging.getLogger(__name__)

COMPUTE_PROVIDER = "Microsoft.Compute"
DISK_RESOURCE_TYPE = "Microsoft.Compute/disks"
VM_RESOURCE_TYPE = "Microsoft.Compute/virtualMachines"
VM_WRITE_OPERATION = "Microsoft.Compute/virtualMachines/write"
SUCCEEDED = "succeeded"


def isoformat(dt_obj):
    if dt_obj.tzinfo is not None:
        dt_obj = dt_obj.astimezone(timezone.utc)
    return dt_obj.strftime("%Y-%m-%dT%H:%M:%SZ")


def _value(obj):
    # LocalizableString on the SDK model, plain dict when built from as_dict()
    if obj is None:
        return None
    if isinstance(obj, str):
        return obj
    if isinstance(obj, dict):
        return obj.get('value')
    return getattr(obj, 'value', None)


def _utc(ts):
    if ts is None:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def to_activity_record(evt):
    """Normalize an ``EventData`` into an ActivityRecord."""
    rid = getattr(evt, 'resource_id', None)
    parsed = parse_resource_id(rid)
    rtype = _value(getattr(evt, 'resource_type', None))
    if not rtype and parsed.provider and parsed.type:
        rtype = f"{parsed.provider}/{parsed.type}"
    return ActivityRecord(
        operation_name=_value(getattr(evt, 'operation_name', None)),
        status=_value(getattr(evt, 'status', None)),
        resource_id=rid,
        resource_type=rtype,
        resource_group=getattr(evt, 'resource_group_name', None) or parsed.resource_group,
        subscription_id=getattr(evt, 'subscription_id', None) or parsed.subscription_id,
        event_time=_utc(getattr(evt, 'event_timestamp', None)),
        caller=getattr(evt, 'caller', None),
        correlation_id=getattr(evt, 'correlation_id', None),
        properties=dict(getattr(evt, 'properties', None) or {}),
    )


@dataclass
class LogReadResult:
    """Outcome of one log read for one subscription."""

    subscription_id: str
    kind: str
    records: List[ActivityRecord] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self):
        return self.error is None


class ActivityLogReader:
    """Reads succeeded Microsoft.Compute operations from the Activity Log."""

    def __init__(self, credential, client_factory=MonitorManagementClient):
        self._credential = credential
        self._client_factory = client_factory

    def _fetch(self, subscription_id, start_dt, end_dt):
        mc = self._client_factory(self._credential, subscription_id)
        f = (
            f"eventTimestamp ge '{isoformat(start_dt)}' and eventTimestamp le '{isoformat(end_dt)}'"
            f" and resourceProvider eq '{COMPUTE_PROVIDER}'"
        )
        return mc.activity_logs.list(filter=f)

    def _read(self, kind, subscription_id, start_dt, end_dt, resource_type, operation=None):
        start_dt, end_dt = _utc(start_dt), _utc(end_dt)
        try:
            records = []
            for evt in self._fetch(subscription_id, start_dt, end_dt):
                rec = to_activity_record(evt)
                if (rec.status or '').lower() != SUCCEEDED:
                    continue
                if (rec.resource_type or '').lower() != resource_type.lower():
                    continue
                if operation and (rec.operation_name or '').lower() != operation.lower():
                    continue
                if rec.event_time is None or not (start_dt <= rec.event_time < end_dt):
                    continue
                records.append(rec)
        except AzureError as e:
            logger.warning("Failed to read %s events for subscription %s: %s", kind, subscription_id, e)
            return LogReadResult(subscription_id, kind, error=str(e))
        logger.debug("Read %d %s events for subscription %s", len(records), kind, subscription_id)
        return LogReadResult(subscription_id, kind, records)

    def disk_events(self, subscription_id, start_dt, end_dt):
        return self._read('disk', subscription_id, start_dt, end_dt, DISK_RESOURCE_TYPE)

    def vm_write_events(self, subscription_id, start_dt, end_dt):
        return self._read('vm', subscription_id, start_dt, end_dt, VM_RESOURCE_TYPE, VM_WRITE_OPERATION)


__all__ = [
    "ActivityLogReader",
    "LogReadResult",
    "isoformat",
    "to_activity_record",
]
