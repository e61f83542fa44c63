import logging
import os

import pandas as pd

from .activity_log import isoformat

logger = logging.getLogger(__name__)

DISK_COLUMNS = [
    'ChangeType', 'DiskName', 'SubscriptionId', 'ResourceGroup', 'Location', 'EventTime',
    'Operation', 'Caller', 'RequestedSizeGB', 'RequestedSku', 'RequestedEnc', 'Source',
    'ResourceId', 'CorrelationId',
]
ENRICHED_COLUMNS = ['CurrentSizeGB', 'CurrentSku', 'ManagedBy']
ATTACH_COLUMNS = [
    'ChangeType', 'VmName', 'SubscriptionId', 'ResourceGroup', 'DiskId', 'EventTime',
    'Source', 'CorrelationId',
]
INT_COLUMNS = ['RequestedSizeGB', 'CurrentSizeGB']


def _text(value):
    # enum members render as their value, not "DiskChangeType.CREATED"
    return getattr(value, 'value', value)


def _time(value):
    return isoformat(value) if value is not None else None


def _ordered(records):
    with_time = [r for r in records if r.event_time is not None]
    without = [r for r in records if r.event_time is None]
    return sorted(with_time, key=lambda r: r.event_time) + without


def disk_changes_frame(records, include_current=None):
    if include_current is None:
        include_current = any(r.enriched for r in records)
    columns = DISK_COLUMNS + (ENRICHED_COLUMNS if include_current else [])
    rows = []
    for r in _ordered(records):
        row = {
            'ChangeType': _text(r.change_type),
            'DiskName': r.disk_name,
            'SubscriptionId': r.subscription_id,
            'ResourceGroup': r.resource_group,
            'Location': r.location,
            'EventTime': _time(r.event_time),
            'Operation': r.operation_name,
            'Caller': r.caller,
            'RequestedSizeGB': r.requested_size_gb,
            'RequestedSku': r.requested_sku,
            'RequestedEnc': r.requested_encryption,
            'Source': _text(r.source),
            'ResourceId': r.resource_id,
            'CorrelationId': r.correlation_id,
        }
        if include_current:
            row.update({
                'CurrentSizeGB': r.current_size_gb,
                'CurrentSku': r.current_sku,
                'ManagedBy': r.managed_by,
            })
        rows.append(row)
    df = pd.DataFrame(rows, columns=columns)
    for col in INT_COLUMNS:
        if col in df.columns:
            df[col] = df[col].astype('Int64')
    return df


def attach_changes_frame(records):
    rows = [{
        'ChangeType': _text(r.change_type),
        'VmName': r.vm_name,
        'SubscriptionId': r.subscription_id,
        'ResourceGroup': r.resource_group,
        'DiskId': r.disk_id,
        'EventTime': _time(r.event_time),
        'Source': _text(r.source),
        'CorrelationId': r.correlation_id,
    } for r in _ordered(records)]
    return pd.DataFrame(rows, columns=ATTACH_COLUMNS)


def summary_frame(disk_changes, attach_changes):
    """Count changes per subscription and change type."""
    frames = [
        disk_changes_frame(disk_changes, include_current=False)[['SubscriptionId', 'ChangeType']],
        attach_changes_frame(attach_changes)[['SubscriptionId', 'ChangeType']],
    ]
    df = pd.concat(frames, ignore_index=True)
    if df.empty:
        return pd.DataFrame(columns=['SubscriptionId', 'ChangeType', 'Count'])
    return (
        df.fillna({'SubscriptionId': ''})
        .groupby(['SubscriptionId', 'ChangeType'])
        .size()
        .reset_index(name='Count')
    )


def _write(df, path):
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    df.to_csv(path, index=False, encoding='utf-8')
    logger.info("Wrote %d rows to %s", len(df), path)
    return path


def write_disk_changes(records, path, include_current=None):
    return _write(disk_changes_frame(records, include_current), path)


def write_attach_changes(records, path):
    return _write(attach_changes_frame(records), path)


def write_summary(disk_changes, attach_changes, path):
    return _write(summary_frame(disk_changes, attach_changes), path)
