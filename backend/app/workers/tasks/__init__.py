"""
Celery Tasks
"""

from .scan_tasks import execute_site_scan

__all__ = [
    "execute_site_scan",
]
