"""
Benchmarking harness for document stores speaking the MongoDB wire protocol.

This package drives a fixed-concurrency CRUD workload against FerretDB and
MongoDB for a fixed duration, records per-operation latency, and summarises
throughput plus nearest-rank percentiles for each target.
"""

from .main import main

__all__ = ["main"]
