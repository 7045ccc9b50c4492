from .sample import SampleFactory, TelemetrySample, random_sample, utc_timestamp
from .streamer import FastPathStreamer, SendOutcome, SendResult, StreamStats

__all__ = [
    "SampleFactory",
    "TelemetrySample",
    "random_sample",
    "utc_timestamp",
    "FastPathStreamer",
    "SendOutcome",
    "SendResult",
    "StreamStats",
]
