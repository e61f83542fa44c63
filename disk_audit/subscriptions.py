import logging
from dataclasses import dataclass
from typing import Optional

from azure.core.exceptions import AzureError, ClientAuthenticationError
from azure.mgmt.resource import SubscriptionClient

from .errors import AuthenticationError, SubscriptionListingError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Subscription:
    subscription_id: str
    display_name: Optional[str] = None
    state: Optional[str] = None
    tenant_id: Optional[str] = None


def list_subscriptions(credential, tenant_id=None, client=None):
    """Return the subscriptions the identity can see, limited to ``tenant_id`` when given."""
    sub_client = client or SubscriptionClient(credential)
    subs = []
    try:
        for s in sub_client.subscriptions.list():
            sub_tenant = getattr(s, 'tenant_id', None)
            if tenant_id and sub_tenant and sub_tenant.lower() != tenant_id.lower():
                continue
            subs.append(Subscription(
                subscription_id=s.subscription_id,
                display_name=s.display_name,
                state=str(getattr(s.state, 'value', s.state)) if s.state is not None else None,
                tenant_id=sub_tenant,
            ))
    except ClientAuthenticationError as e:
        raise AuthenticationError(f"Failed to authenticate against tenant {tenant_id or '(default)'}: {e}") from e
    except AzureError as e:
        raise SubscriptionListingError(f"Failed to list subscriptions: {e}") from e
    return subs


def _matches(sub, names):
    return sub.subscription_id.lower() in names or (sub.display_name or '').lower() in names


def filter_subscriptions(subs, include=None, exclude=None):
    """Apply include/exclude lists; entries match a subscription id or display name."""
    inc = {n.lower() for n in include or [] if n}
    exc = {n.lower() for n in exclude or [] if n}
    selected = []
    for sub in subs:
        if inc and not _matches(sub, inc):
            continue
        if exc and _matches(sub, exc):
            logger.debug("Excluding subscription %s (%s)", sub.display_name, sub.subscription_id)
            continue
        selected.append(sub)
    return selected
