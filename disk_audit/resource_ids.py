from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ResourceIdentifier:
    subscription_id: Optional[str] = None
    resource_group: Optional[str] = None
    provider: Optional[str] = None
    type: Optional[str] = None
    name: Optional[str] = None


def parse_resource_id(path):
    """Split an ARM path like
    /subscriptions/{sub}/resourceGroups/{rg}/providers/{ns}/{type}/{name}
    into its parts. Missing segments stay None; nothing is validated.
    """
    if not path or not isinstance(path, str):
        return ResourceIdentifier()
    parts = path.split('/')
    n = len(parts)
    return ResourceIdentifier(
        subscription_id=parts[2] if n >= 3 else None,
        resource_group=parts[4] if n >= 5 else None,
        provider=parts[6] if n >= 7 else None,
        type=parts[7] if n >= 9 else None,
        name=parts[8] if n >= 9 else None,
    )
