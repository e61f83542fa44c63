"""Best-effort field extraction from Activity Log request/response bodies.

Activity Log entries carry the ARM request and response as JSON text inside
``properties``. These helpers pull single values out of them without caring
where in the document the value sits; a field that appears in an unrelated
nested object can match. Anything that is missing or not valid JSON comes
back as None (or an empty set) rather than raising.
"""
import json
import logging
import math

logger = logging.getLogger(__name__)

_MISSING = object()


def _load(blob):
    if not blob:
        return None
    if isinstance(blob, (dict, list)):
        return blob
    try:
        return json.loads(blob)
    except (TypeError, ValueError):
        logger.debug("Payload is not valid JSON (%d chars)", len(str(blob)))
        return None


def _walk(node):
    """Yield (key, value) pairs depth-first in document order."""
    if isinstance(node, dict):
        for k, v in node.items():
            yield k, v
            yield from _walk(v)
    elif isinstance(node, list):
        for item in node:
            yield from _walk(item)


def _find_first(node, key):
    for k, v in _walk(node):
        if k == key:
            return v
    return _MISSING


def _scalar(value):
    # numbers come back as int; booleans are not numbers here
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        return value
    return None


def extract_field(blob, field):
    """Return the first value of ``field`` in a JSON payload.

    ``field`` may be dotted (``"sku.name"``): the head key is searched for
    anywhere in the document and the rest of the path is followed from there.
    """
    doc = _load(blob)
    if doc is None or not field:
        return None
    head, *rest = field.split('.')
    value = _find_first(doc, head)
    for key in rest:
        if not isinstance(value, dict):
            return None
        value = value.get(key, _MISSING)
    if value is _MISSING:
        return None
    return _scalar(value)


def extract_disk_ids(blob):
    """Collect every disk id referenced under a ``managedDisk`` object."""
    doc = _load(blob)
    if doc is None:
        return frozenset()
    ids = set()
    for k, v in _walk(doc):
        if k == 'managedDisk' and isinstance(v, dict):
            disk_id = v.get('id')
            if isinstance(disk_id, str) and disk_id:
                ids.add(disk_id)
    return frozenset(ids)


def event_payload(properties, *names):
    """Case-insensitive lookup of the first non-empty property among names."""
    if not properties:
        return None
    lowered = {str(k).lower(): v for k, v in properties.items()}
    for name in names:
        value = lowered.get(name.lower())
        if value:
            return value
    return None
