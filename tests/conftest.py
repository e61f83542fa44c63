import json
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from disk_audit.models import ActivityRecord, DiskInventoryRow

SUB = "00000000-0000-0000-0000-000000000001"
T0 = datetime(2026, 9, 1, 8, 0, tzinfo=timezone.utc)


def disk_id(name, sub=SUB, rg="rg-app"):
    return f"/subscriptions/{sub}/resourceGroups/{rg}/providers/Microsoft.Compute/disks/{name}"


def vm_id(name, sub=SUB, rg="rg-app"):
    return f"/subscriptions/{sub}/resourceGroups/{rg}/providers/Microsoft.Compute/virtualMachines/{name}"


def vm_body(os_disk, *data_disks):
    return json.dumps({
        "name": "vm",
        "properties": {
            "storageProfile": {
                "osDisk": {"name": "os", "managedDisk": {"id": os_disk}},
                "dataDisks": [
                    {"lun": i, "managedDisk": {"id": d, "storageAccountType": "Premium_LRS"}}
                    for i, d in enumerate(data_disks)
                ],
            }
        },
    })


@pytest.fixture
def t0():
    return T0


@pytest.fixture
def at():
    """Minutes after T0."""
    return lambda minutes: T0 + timedelta(minutes=minutes)


@pytest.fixture
def make_disk_event():
    def factory(name, op="Microsoft.Compute/disks/write", minutes=0, body=None, key="responseBody",
                rg="rg-app", sub=SUB, caller="ops@example.com", correlation="corr-1"):
        props = {key: json.dumps(body)} if body is not None else {}
        return ActivityRecord(
            operation_name=op,
            status="Succeeded",
            resource_id=disk_id(name, sub, rg),
            resource_type="Microsoft.Compute/disks",
            resource_group=rg.upper(),
            subscription_id=sub,
            event_time=T0 + timedelta(minutes=minutes),
            caller=caller,
            correlation_id=correlation,
            properties=props,
        )
    return factory


@pytest.fixture
def make_vm_event():
    def factory(name, disks, minutes=0, rg="rg-app", sub=SUB, correlation=None, key="responseBody"):
        return ActivityRecord(
            operation_name="Microsoft.Compute/virtualMachines/write",
            status="Succeeded",
            resource_id=vm_id(name, sub, rg),
            resource_type="Microsoft.Compute/virtualMachines",
            resource_group=rg,
            subscription_id=sub,
            event_time=T0 + timedelta(minutes=minutes),
            caller="ops@example.com",
            correlation_id=correlation or f"corr-{minutes}",
            properties={key: vm_body(*disks)} if disks else {},
        )
    return factory


@pytest.fixture
def make_inventory_row():
    def factory(name, rg="rg-app", sub=SUB, minutes=0, **kw):
        kw.setdefault("location", "westeurope")
        kw.setdefault("disk_size_gb", 128)
        kw.setdefault("sku", "Premium_LRS")
        kw.setdefault("managed_by", None)
        return DiskInventoryRow(
            disk_name=name,
            subscription_id=sub,
            resource_group=rg,
            time_created=T0 + timedelta(minutes=minutes),
            resource_id=disk_id(name, sub, rg),
            **kw,
        )
    return factory


@pytest.fixture
def sdk_event():
    """An object shaped like azure.mgmt.monitor EventData."""
    def factory(resource_id, op, minutes=0, status="Succeeded", resource_type=None, properties=None):
        return SimpleNamespace(
            operation_name=SimpleNamespace(value=op, localized_value=op),
            status=SimpleNamespace(value=status, localized_value=status),
            resource_id=resource_id,
            resource_type=SimpleNamespace(value=resource_type) if resource_type else None,
            resource_group_name="RG-APP",
            subscription_id=SUB,
            event_timestamp=T0 + timedelta(minutes=minutes),
            caller="ops@example.com",
            correlation_id=f"corr-{minutes}",
            properties=properties or {},
        )
    return factory
