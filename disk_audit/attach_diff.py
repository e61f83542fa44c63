"""Infer disk attach/detach events from consecutive VM writes.

Each successful ``virtualMachines/write`` carries the VM model, and with it
the set of managed disks referenced at that moment. Diffing two consecutive
sets for the same VM tells which disks came and went in between. The first
write seen for a VM only provides a baseline, so the disks attached before
the window starts are never reported.

Detach records take the time and correlation id of the *later* write (the one
where the disk is gone) but the VM attribution of the earlier snapshot.
"""
import logging
from collections import defaultdict

from .extract import event_payload, extract_disk_ids
from .models import AttachChangeRecord, AttachChangeType, Source, VmDiskSnapshot
from .resource_ids import parse_resource_id

logger = logging.getLogger(__name__)


def snapshot_from_event(evt):
    """Build a VmDiskSnapshot from a VM write record, or None without a time."""
    if evt.event_time is None:
        return None
    rid = parse_resource_id(evt.resource_id)
    body = event_payload(evt.properties, 'responseBody', 'requestbody')
    return VmDiskSnapshot(
        time=evt.event_time,
        vm_name=rid.name,
        subscription_id=rid.subscription_id or evt.subscription_id,
        resource_group=rid.resource_group or evt.resource_group,
        disk_ids=extract_disk_ids(body),
        correlation_id=evt.correlation_id,
    )


def diff_snapshots(snapshots):
    changes = []
    ordered = sorted(snapshots, key=lambda s: s.time)
    for prev, cur in zip(ordered, ordered[1:]):
        for disk_id in sorted(cur.disk_ids - prev.disk_ids):
            changes.append(AttachChangeRecord(
                change_type=AttachChangeType.ATTACHED,
                vm_name=cur.vm_name,
                subscription_id=cur.subscription_id,
                resource_group=cur.resource_group,
                disk_id=disk_id,
                event_time=cur.time,
                source=Source.ACTIVITY_LOG,
                correlation_id=cur.correlation_id,
            ))
        for disk_id in sorted(prev.disk_ids - cur.disk_ids):
            changes.append(AttachChangeRecord(
                change_type=AttachChangeType.DETACHED,
                vm_name=prev.vm_name,
                subscription_id=prev.subscription_id,
                resource_group=prev.resource_group,
                disk_id=disk_id,
                event_time=cur.time,
                source=Source.ACTIVITY_LOG,
                correlation_id=cur.correlation_id,
            ))
    return changes


class AttachmentDiffEngine:

    def __init__(self):
        self._snapshots = defaultdict(list)

    def observe(self, snapshot):
        if snapshot is None:
            return
        self._snapshots[snapshot.vm_key].append(snapshot)

    def observe_events(self, events):
        for evt in events:
            self.observe(snapshot_from_event(evt))

    @property
    def vm_count(self):
        return len(self._snapshots)

    def diff(self):
        changes = []
        for key, snapshots in self._snapshots.items():
            if len(snapshots) < 2:
                logger.debug("Only one write for %s, nothing to diff", key)
                continue
            changes.extend(diff_snapshots(snapshots))
        changes.sort(key=lambda c: c.event_time)
        return changes
