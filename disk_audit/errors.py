class DiskAuditError(Exception):
    """Base error for the disk audit tool."""


class ConfigurationError(DiskAuditError):
    pass


class AuthenticationError(DiskAuditError):
    """The credential could not obtain a session for the tenant."""


class SubscriptionListingError(DiskAuditError):
    pass
