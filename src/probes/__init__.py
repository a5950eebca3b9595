# src/probes/__init__.py
# Exports the pool probes and their result type

from .result import ProbeResult, describe_error
from .service import run_query, hold_transaction, hold_connection, ping

__all__ = [
    "ProbeResult",
    "describe_error",
    "run_query",
    "hold_transaction",
    "hold_connection",
    "ping",
]
