from datetime import timedelta
from unittest.mock import MagicMock

from azure.core.exceptions import ClientAuthenticationError, HttpResponseError

from disk_audit.activity_log import ActivityLogReader, isoformat, to_activity_record

from conftest import SUB, disk_id, vm_id


def _reader(events=None, error=None):
    client = MagicMock()
    if error is not None:
        client.activity_logs.list.side_effect = error
    else:
        client.activity_logs.list.return_value = iter(events or [])
    factory = MagicMock(return_value=client)
    return ActivityLogReader(credential=object(), client_factory=factory), factory, client


def test_isoformat_normalizes_to_utc(t0):
    assert isoformat(t0) == "2026-09-01T08:00:00Z"


def test_to_activity_record(sdk_event):
    evt = sdk_event(disk_id("d1"), "Microsoft.Compute/disks/write", resource_type="Microsoft.Compute/disks",
                    properties={"requestbody": "{}"})
    rec = to_activity_record(evt)
    assert rec.operation_name == "Microsoft.Compute/disks/write"
    assert rec.status == "Succeeded"
    assert rec.resource_type == "Microsoft.Compute/disks"
    assert rec.resource_group == "RG-APP"
    assert rec.properties == {"requestbody": "{}"}


def test_resource_type_falls_back_to_resource_id(sdk_event):
    rec = to_activity_record(sdk_event(disk_id("d1"), "Microsoft.Compute/disks/delete"))
    assert rec.resource_type == "Microsoft.Compute/disks"


def test_disk_events_keep_succeeded_disks_in_window(sdk_event, t0):
    events = [
        sdk_event(disk_id("d1"), "Microsoft.Compute/disks/write", minutes=5),
        sdk_event(disk_id("d2"), "Microsoft.Compute/disks/write", minutes=6, status="Started"),
        sdk_event(disk_id("d3"), "Microsoft.Compute/disks/delete", minutes=7, status="Failed"),
        sdk_event(vm_id("vm1"), "Microsoft.Compute/virtualMachines/write", minutes=8),
        sdk_event(disk_id("d4"), "Microsoft.Compute/disks/write", minutes=-1),
        sdk_event(disk_id("d5"), "Microsoft.Compute/disks/delete", minutes=60),
    ]
    reader, factory, client = _reader(events)

    result = reader.disk_events(SUB, t0, t0 + timedelta(minutes=60))

    assert result.ok
    assert [r.resource_id for r in result.records] == [disk_id("d1")]
    factory.assert_called_once()
    assert factory.call_args.args[1] == SUB
    f = client.activity_logs.list.call_args.kwargs["filter"]
    assert "eventTimestamp ge '2026-09-01T08:00:00Z'" in f
    assert "resourceProvider eq 'Microsoft.Compute'" in f


def test_vm_write_events_only_keep_vm_writes(sdk_event, t0):
    events = [
        sdk_event(vm_id("vm1"), "Microsoft.Compute/virtualMachines/write", minutes=1),
        sdk_event(vm_id("vm1"), "Microsoft.Compute/virtualMachines/deallocate/action", minutes=2),
        sdk_event(vm_id("vm1") + "/extensions/ama", "Microsoft.Compute/virtualMachines/extensions/write",
                  minutes=3, resource_type="Microsoft.Compute/virtualMachines/extensions"),
        sdk_event(disk_id("d1"), "Microsoft.Compute/disks/write", minutes=4),
    ]
    reader, _, _ = _reader(events)

    result = reader.vm_write_events(SUB, t0, t0 + timedelta(days=1))

    assert [(r.resource_id, r.event_time) for r in result.records] == [(vm_id("vm1"), t0 + timedelta(minutes=1))]


def test_api_error_is_a_failed_result_not_an_exception(t0, caplog):
    reader, _, _ = _reader(error=HttpResponseError(message="Too Many Requests"))

    result = reader.disk_events(SUB, t0, t0 + timedelta(days=1))

    assert not result.ok
    assert result.records == []
    assert result.kind == "disk"
    assert "Too Many Requests" in result.error
    assert any(r.levelname == "WARNING" for r in caplog.records)


def test_auth_error_is_a_failed_result(t0):
    reader, _, _ = _reader(error=ClientAuthenticationError(message="expired"))
    assert not reader.vm_write_events(SUB, t0, t0 + timedelta(days=1)).ok
