from datetime import datetime

from pydantic import BaseModel


def format_time_of_day(ts_ms: int) -> str:
    """Local time-of-day label for an epoch millisecond timestamp."""
    return datetime.fromtimestamp(ts_ms / 1000).strftime("%X")


class CandlePoint(BaseModel):
    time: str
    price: float
    ts: int


class ErrorBody(BaseModel):
    error: str
