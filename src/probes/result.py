# src/probes/result.py
# The value every probe returns
# A probe never raises to the HTTP layer; it returns either a success carrying
# its measurements or a failure carrying a one-line error description.

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ProbeResult:
    """
    Outcome of one probe execution.

    Build it through ProbeResult.success() or ProbeResult.failure() so the
    two shapes never mix: a success has no error, a failure has no payload.

    Attributes:
        ok: True when the probe completed
        payload: measurement fields, in response order (empty on failure)
        error: "<ExceptionClass>: <message>" (None on success)
    """
    ok: bool
    payload: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def success(cls, **payload) -> "ProbeResult":
        return cls(ok=True, payload=dict(payload))

    @classmethod
    def failure(cls, exc: BaseException) -> "ProbeResult":
        return cls(ok=False, error=describe_error(exc))

    def to_dict(self) -> Dict[str, Any]:
        """
        Wire representation: {"ok": true, ...payload} or {"ok": false, "error": ...}.
        """
        if self.ok:
            return {"ok": True, **self.payload}
        return {"ok": False, "error": self.error}


def describe_error(exc: BaseException) -> str:
    """
    Format an exception as "<kind>: <message>".

    psycopg2 messages often end with a newline and carry a second DETAIL
    line; only the first line is kept.
    """
    kind = type(exc).__name__
    lines = str(exc).strip().splitlines()
    if not lines:
        return kind
    return f"{kind}: {lines[0]}"
