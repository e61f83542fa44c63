"""Audit Azure Managed Disk lifecycle and VM attach/detach events."""

__version__ = "0.1.0"
