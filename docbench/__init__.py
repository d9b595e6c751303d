"""FerretDB/MongoDB CRUD throughput and latency benchmark."""

__version__ = "0.1.0"
