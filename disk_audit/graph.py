"""Azure Resource Graph inventory queries for managed disks.

Resource Graph sees disks that were created before the Activity Log
retention window, and it holds the current size/sku/owner of every disk.
Both queries are optional: a failed query logs a warning and yields no rows,
which callers must read as "unknown" rather than "no disks".
"""
import logging
from typing import Any, Dict, List, Optional

import pandas as pd
from azure.core.exceptions import AzureError
from azure.mgmt.resourcegraph import ResourceGraphClient
from azure.mgmt.resourcegraph.models import QueryRequest, QueryRequestOptions

from .activity_log import isoformat
from .models import DiskInventoryRow

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000

_DISK_PROJECTION = """
| project id, name, subscriptionId, resourceGroup, location, managedBy,
    diskSizeGB = toint(properties.diskSizeGB),
    sku = tostring(sku.name),
    timeCreated = tostring(properties.timeCreated),
    osType = tostring(properties.osType),
    encryptionType = tostring(properties.encryption.type)
"""

RECENTLY_CREATED_QUERY = """
Resources
| where type =~ 'microsoft.compute/disks'
| where todatetime(properties.timeCreated) >= datetime({start})
""" + _DISK_PROJECTION

DISK_METADATA_QUERY = """
Resources
| where type =~ 'microsoft.compute/disks'
""" + _DISK_PROJECTION


def _blank_to_none(value):
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _as_int(value):
    value = _blank_to_none(value)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_datetime(value):
    value = _blank_to_none(value)
    if value is None:
        return None
    ts = pd.to_datetime(value, utc=True, errors='coerce')
    if pd.isna(ts):
        return None
    return ts.floor('us').to_pydatetime()


def to_inventory_row(row: Dict[str, Any]) -> DiskInventoryRow:
    return DiskInventoryRow(
        disk_name=_blank_to_none(row.get('name')),
        subscription_id=_blank_to_none(row.get('subscriptionId')),
        resource_group=_blank_to_none(row.get('resourceGroup')),
        location=_blank_to_none(row.get('location')),
        managed_by=_blank_to_none(row.get('managedBy')),
        disk_size_gb=_as_int(row.get('diskSizeGB')),
        sku=_blank_to_none(row.get('sku')),
        time_created=_as_datetime(row.get('timeCreated')),
        os_type=_blank_to_none(row.get('osType')),
        encryption_type=_blank_to_none(row.get('encryptionType')),
        resource_id=_blank_to_none(row.get('id')),
    )


class InventoryClient:
    """Paged Resource Graph queries scoped to a set of subscriptions."""

    def __init__(self, credential, client: Optional[ResourceGraphClient] = None):
        self._client = client or ResourceGraphClient(credential)

    def query(self, kql: str, subscription_ids: List[str]) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        skip_token = None
        try:
            while True:
                options = QueryRequestOptions(
                    top=PAGE_SIZE,
                    skip_token=skip_token,
                    result_format="objectArray",
                )
                req = QueryRequest(query=kql, subscriptions=subscription_ids, options=options)
                resp = self._client.resources(req)
                rows.extend(resp.data or [])
                skip_token = resp.skip_token
                if not skip_token:
                    break
                logger.debug("Fetching next Resource Graph page, %d rows so far", len(rows))
        except AzureError as e:
            logger.warning("Resource Graph query failed, treating result as unknown: %s", e)
            return []
        return rows

    def recently_created_disks(self, subscription_ids, start_dt) -> List[DiskInventoryRow]:
        kql = RECENTLY_CREATED_QUERY.format(start=isoformat(start_dt))
        rows = [to_inventory_row(r) for r in self.query(kql, subscription_ids)]
        # the query filter is authoritative, but a row without a parsable timeCreated is useless here
        return [r for r in rows if r.time_created is not None]

    def disk_metadata(self, subscription_ids) -> List[DiskInventoryRow]:
        return [to_inventory_row(r) for r in self.query(DISK_METADATA_QUERY, subscription_ids)]
