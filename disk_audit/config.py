"""Run configuration for the disk audit.

Values come from the command line; the tenant and output directory can also
be supplied through the environment (``AZURE_TENANT_ID``,
``DISK_AUDIT_OUTPUT_DIR``).
"""
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_DAYS = 30
ACTIVITY_LOG_RETENTION_DAYS = 90
DEFAULT_OUTPUT_DIR = os.getenv("DISK_AUDIT_OUTPUT_DIR") or "reports"

DISK_CHANGES_PREFIX = "ManagedDiskChanges"
ATTACH_CHANGES_PREFIX = "ManagedDiskAttachDetach"


@dataclass
class AuditConfig:
    start_date: datetime
    end_date: datetime
    tenant_id: Optional[str] = None
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    output_path: Optional[str] = None
    output_dir: str = DEFAULT_OUTPUT_DIR
    use_resource_graph: bool = True
    write_summary: bool = False

    def __post_init__(self):
        self.start_date = as_utc(self.start_date)
        self.end_date = as_utc(self.end_date)
        if self.start_date >= self.end_date:
            raise ConfigurationError(
                f"start date {self.start_date:%Y-%m-%d} must be before end date {self.end_date:%Y-%m-%d}"
            )

    @property
    def disk_changes_path(self):
        return self.output_path or default_output_path(self.start_date, self.output_dir)

    @property
    def attach_changes_path(self):
        return attach_output_path(self.disk_changes_path, self.start_date)

    @property
    def summary_path(self):
        root, ext = os.path.splitext(self.disk_changes_path)
        return f"{root}_summary{ext or '.csv'}"


def as_utc(value):
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_date(text):
    try:
        return datetime.strptime(text, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError as e:
        raise ConfigurationError(f"invalid date {text!r}, expected YYYY-MM-DD") from e


def split_names(values):
    """Flatten repeated and comma separated CLI values."""
    names = []
    for v in values or []:
        names.extend(p.strip() for p in v.split(',') if p.strip())
    return names


def default_output_path(start_date, output_dir=DEFAULT_OUTPUT_DIR):
    return os.path.join(output_dir, f"{DISK_CHANGES_PREFIX}_{start_date:%Y%m%d}.csv")


def attach_output_path(disk_changes_path, start_date):
    return os.path.join(
        os.path.dirname(disk_changes_path),
        f"{ATTACH_CHANGES_PREFIX}_{start_date:%Y%m%d}.csv",
    )


def config_from_args(args, now=None):
    now = now or datetime.now(timezone.utc)
    end = parse_date(args.end_date) if args.end_date else now
    if args.start_date:
        start = parse_date(args.start_date)
    else:
        start = (end - timedelta(days=args.days)).replace(hour=0, minute=0, second=0, microsecond=0)
    if now - start > timedelta(days=ACTIVITY_LOG_RETENTION_DAYS):
        logger.warning(
            "Start date %s is older than the %d-day Activity Log retention; "
            "earlier changes are only visible through Resource Graph",
            start.strftime("%Y-%m-%d"), ACTIVITY_LOG_RETENTION_DAYS,
        )
    return AuditConfig(
        start_date=start,
        end_date=end,
        tenant_id=args.tenant_id or os.getenv("AZURE_TENANT_ID"),
        include=split_names(args.include),
        exclude=split_names(args.exclude),
        output_path=args.output,
        output_dir=args.outdir,
        use_resource_graph=not args.no_resource_graph,
        write_summary=args.summary,
    )
