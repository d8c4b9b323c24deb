from .registry import USERSTAMP_STAMPS_TOTAL

STAMPED = "stamped"
SUPPRESSED = "suppressed"
NO_STAMPER = "no_stamper"


def observe_stamp(model: str, role: str, outcome: str) -> None:
    """Record the outcome of one stamping attempt."""
    USERSTAMP_STAMPS_TOTAL.labels(model=model, role=role, outcome=outcome).inc()


__all__ = [
    "USERSTAMP_STAMPS_TOTAL",
    "STAMPED",
    "SUPPRESSED",
    "NO_STAMPER",
    "observe_stamp",
]
