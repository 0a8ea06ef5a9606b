"""Dispatch parameters, read once from Django settings."""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Sequence, Tuple, Union

from django.conf import settings

DEFAULT_OFFER_WINDOW_SECONDS = 300
DEFAULT_CANDIDATE_WINDOWS = (1, 20)

UNBOUNDED_WINDOW_NAMES = ("none", "all", "*")


def parse_candidate_windows(raw: Union[str, Sequence[Optional[int]]]) -> Tuple[Optional[int], ...]:
    """
    Accept ``"1,20"`` / ``"1,20,none"`` (environment form) or a sequence.

    ``none``, ``all`` and ``*`` stand for an unbounded window.
    """
    if not isinstance(raw, str):
        return tuple(raw)

    windows = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        if part.lower() in UNBOUNDED_WINDOW_NAMES:
            windows.append(None)
        else:
            windows.append(int(part))
    return tuple(windows)


@dataclass(frozen=True)
class DispatchConfig:
    """
    Configuration handed to the Dispatcher at construction.

    Attributes:
        offer_window: How long a driver has to answer an offer
        candidate_windows: Top-K sizes tried in order when ranking drivers;
            ``None`` as the last entry means "no limit"
    """
    offer_window: timedelta = timedelta(seconds=DEFAULT_OFFER_WINDOW_SECONDS)
    candidate_windows: Tuple[Optional[int], ...] = DEFAULT_CANDIDATE_WINDOWS

    def __post_init__(self):
        if self.offer_window <= timedelta(0):
            raise ValueError("offer_window must be positive")
        if not self.candidate_windows:
            raise ValueError("candidate_windows must not be empty")
        if None in self.candidate_windows[:-1]:
            raise ValueError("only the last candidate window may be unbounded")
        if any(size is not None and size <= 0 for size in self.candidate_windows):
            raise ValueError("candidate window sizes must be positive")

    @classmethod
    def from_settings(cls) -> "DispatchConfig":
        window_seconds = getattr(settings, "DELIVERY_OFFER_WINDOW_SECONDS", DEFAULT_OFFER_WINDOW_SECONDS)
        windows = getattr(settings, "DISPATCH_CANDIDATE_WINDOWS", DEFAULT_CANDIDATE_WINDOWS)
        return cls(
            offer_window=timedelta(seconds=int(window_seconds)),
            candidate_windows=parse_candidate_windows(windows),
        )
