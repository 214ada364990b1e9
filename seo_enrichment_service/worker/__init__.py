"""Worker utilities for the SEO enrichment service."""

from .lease import InvocationLease
from .runner import BatchResult, BatchRunner, run_worker

__all__ = ["BatchResult", "BatchRunner", "InvocationLease", "run_worker"]
