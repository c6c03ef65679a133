"""Bounded polling of remote long-running operations."""

from aakaas_publish.polling.poller import BoundedPoller

__all__ = ["BoundedPoller"]
