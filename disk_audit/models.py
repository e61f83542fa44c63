from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional


class DiskChangeType(str, Enum):
    CREATED = "Created"
    UPDATED = "Updated"
    DELETED = "Deleted"


class AttachChangeType(str, Enum):
    ATTACHED = "Attached"
    DETACHED = "Detached"


class Source(str, Enum):
    ACTIVITY_LOG = "ActivityLog"
    GRAPH = "Graph"


@dataclass
class ActivityRecord:
    """SDK-independent view of one Activity Log entry."""

    operation_name: Optional[str]
    status: Optional[str]
    resource_id: Optional[str]
    resource_type: Optional[str]
    resource_group: Optional[str]
    subscription_id: Optional[str]
    event_time: Optional[datetime]
    caller: Optional[str] = None
    correlation_id: Optional[str] = None
    properties: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DiskChangeRecord:
    change_type: DiskChangeType
    disk_name: Optional[str]
    subscription_id: Optional[str]
    resource_group: Optional[str]
    location: Optional[str]
    event_time: Optional[datetime]
    operation_name: Optional[str]
    caller: Optional[str]
    source: Source
    requested_size_gb: Optional[int] = None
    requested_sku: Optional[str] = None
    requested_encryption: Optional[str] = None
    resource_id: Optional[str] = None
    correlation_id: Optional[str] = None
    current_size_gb: Optional[int] = None
    current_sku: Optional[str] = None
    managed_by: Optional[str] = None
    enriched: bool = False


@dataclass(frozen=True)
class VmDiskSnapshot:
    time: datetime
    vm_name: Optional[str]
    subscription_id: Optional[str]
    resource_group: Optional[str]
    disk_ids: FrozenSet[str]
    correlation_id: Optional[str] = None

    @property
    def vm_key(self):
        return "|".join((self.subscription_id or "", self.resource_group or "", self.vm_name or "")).lower()


@dataclass(frozen=True)
class AttachChangeRecord:
    change_type: AttachChangeType
    vm_name: Optional[str]
    subscription_id: Optional[str]
    resource_group: Optional[str]
    disk_id: str
    event_time: datetime
    source: Source
    correlation_id: Optional[str] = None


@dataclass(frozen=True)
class DiskInventoryRow:
    disk_name: Optional[str]
    subscription_id: Optional[str]
    resource_group: Optional[str]
    location: Optional[str] = None
    managed_by: Optional[str] = None
    disk_size_gb: Optional[int] = None
    sku: Optional[str] = None
    time_created: Optional[datetime] = None
    os_type: Optional[str] = None
    encryption_type: Optional[str] = None
    resource_id: Optional[str] = None
