import logging
from dataclasses import dataclass, field
from typing import List

from tqdm import tqdm

from .activity_log import ActivityLogReader, LogReadResult
from .aggregate import DiskChangeAggregator
from .attach_diff import AttachmentDiffEngine
from .graph import InventoryClient
from .models import AttachChangeRecord, DiskChangeRecord
from .report import write_attach_changes, write_disk_changes, write_summary

logger = logging.getLogger(__name__)


@dataclass
class AuditResult:
    disk_changes: List[DiskChangeRecord] = field(default_factory=list)
    attach_changes: List[AttachChangeRecord] = field(default_factory=list)
    failed_reads: List[LogReadResult] = field(default_factory=list)
    written: List[str] = field(default_factory=list)


def collect_changes(config, subscriptions, reader, inventory=None):
    """Read every subscription, then backfill/enrich from the inventory if one is given."""
    aggregator = DiskChangeAggregator()
    engine = AttachmentDiffEngine()
    result = AuditResult()

    for sub in tqdm(subscriptions, desc='Subscriptions'):
        sid = sub.subscription_id
        disk_read = reader.disk_events(sid, config.start_date, config.end_date)
        if disk_read.ok:
            aggregator.add_log_events(disk_read.records)
        else:
            result.failed_reads.append(disk_read)

        vm_read = reader.vm_write_events(sid, config.start_date, config.end_date)
        if vm_read.ok:
            engine.observe_events(vm_read.records)
        else:
            result.failed_reads.append(vm_read)

        logger.debug(
            "%s: %d disk events, %d VM writes",
            sub.display_name or sid, len(disk_read.records), len(vm_read.records),
        )

    if inventory is not None:
        sub_ids = [s.subscription_id for s in subscriptions]
        aggregator.backfill_created(inventory.recently_created_disks(sub_ids, config.start_date))
        aggregator.enrich(inventory.disk_metadata(sub_ids))
    else:
        logger.info("Resource Graph disabled, created disks come from the Activity Log only")

    result.disk_changes = aggregator.changes()
    result.attach_changes = engine.diff()
    logger.info(
        "Found %d disk changes and %d attach/detach events across %d VMs",
        len(result.disk_changes), len(result.attach_changes), engine.vm_count,
    )
    if result.failed_reads:
        logger.warning("%d Activity Log reads failed; results are partial", len(result.failed_reads))
    return result


def write_reports(config, result):
    result.written.append(write_disk_changes(result.disk_changes, config.disk_changes_path))
    result.written.append(write_attach_changes(result.attach_changes, config.attach_changes_path))
    if config.write_summary:
        result.written.append(write_summary(result.disk_changes, result.attach_changes, config.summary_path))
    return result


def run_audit(config, credential, subscriptions, reader=None, inventory=None):
    reader = reader or ActivityLogReader(credential)
    if inventory is None and config.use_resource_graph:
        inventory = InventoryClient(credential)
    if not config.use_resource_graph:
        inventory = None
    result = collect_changes(config, subscriptions, reader, inventory)
    return write_reports(config, result)
