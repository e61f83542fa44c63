import logging
from datetime import datetime, timezone

from .extract import event_payload, extract_field
from .models import DiskChangeRecord, DiskChangeType, Source
from .resource_ids import parse_resource_id

logger = logging.getLogger(__name__)

REQUEST_BODY = "requestbody"
RESPONSE_BODY = "responseBody"

_LATEST = datetime.max.replace(tzinfo=timezone.utc)


def classify_operation(operation_name):
    op = (operation_name or '').lower()
    if op.endswith('/delete'):
        return DiskChangeType.DELETED
    if op.endswith('/create'):
        return DiskChangeType.CREATED
    return DiskChangeType.UPDATED


def _key(subscription_id, resource_group, disk_name):
    return (subscription_id, resource_group, disk_name)


def _folded_key(subscription_id, resource_group, disk_name):
    return tuple((p or '').lower() for p in (subscription_id, resource_group, disk_name))


def _sort_key(record):
    return record.event_time or _LATEST


class DiskChangeAggregator:
    """Collects disk change records from the Activity Log and Resource Graph."""

    def __init__(self):
        self._records = []

    def __len__(self):
        return len(self._records)

    def add_log_events(self, events):
        for evt in events:
            self._records.append(self._from_log_event(evt))

    @staticmethod
    def _from_log_event(evt):
        rid = parse_resource_id(evt.resource_id)
        # Started entries carry the request, Succeeded ones the response
        body = event_payload(evt.properties, REQUEST_BODY, RESPONSE_BODY)
        size = extract_field(body, 'diskSizeGB')
        return DiskChangeRecord(
            change_type=classify_operation(evt.operation_name),
            disk_name=rid.name,
            subscription_id=rid.subscription_id or evt.subscription_id,
            resource_group=rid.resource_group or evt.resource_group,
            location=extract_field(body, 'location'),
            event_time=evt.event_time,
            operation_name=evt.operation_name,
            caller=evt.caller,
            source=Source.ACTIVITY_LOG,
            requested_size_gb=size if isinstance(size, int) else None,
            requested_sku=extract_field(body, 'sku.name'),
            requested_encryption=extract_field(body, 'encryption.type'),
            resource_id=evt.resource_id,
            correlation_id=evt.correlation_id,
        )

    def backfill_created(self, rows):
        """Add Created records for disks the Activity Log did not report."""
        seen = {
            _key(r.subscription_id, r.resource_group, r.disk_name)
            for r in self._records
            if r.change_type == DiskChangeType.CREATED
        }
        added = 0
        for row in rows:
            key = _key(row.subscription_id, row.resource_group, row.disk_name)
            if key in seen:
                continue
            seen.add(key)
            self._records.append(DiskChangeRecord(
                change_type=DiskChangeType.CREATED,
                disk_name=row.disk_name,
                subscription_id=row.subscription_id,
                resource_group=row.resource_group,
                location=row.location,
                event_time=row.time_created,
                operation_name=None,
                caller=None,
                source=Source.GRAPH,
                requested_size_gb=row.disk_size_gb,
                requested_sku=row.sku,
                requested_encryption=row.encryption_type,
                resource_id=row.resource_id,
            ))
            added += 1
        logger.info("Added %d created disks from Resource Graph", added)
        return added

    def enrich(self, rows):
        """Attach current inventory metadata; existing current values win."""
        lookup = {}
        for row in rows:
            lookup.setdefault(_folded_key(row.subscription_id, row.resource_group, row.disk_name), row)
        matched = 0
        for rec in self._records:
            if not (rec.subscription_id and rec.resource_group and rec.disk_name):
                continue
            row = lookup.get(_folded_key(rec.subscription_id, rec.resource_group, rec.disk_name))
            if row is None:
                continue
            if row.location:
                rec.location = row.location
            if rec.current_size_gb is None:
                rec.current_size_gb = row.disk_size_gb
            if rec.current_sku is None:
                rec.current_sku = row.sku
            if rec.managed_by is None:
                rec.managed_by = row.managed_by
            rec.enriched = True
            matched += 1
        logger.info("Enriched %d of %d disk changes with current metadata", matched, len(self._records))
        return matched

    def changes(self):
        return sorted(self._records, key=_sort_key)
