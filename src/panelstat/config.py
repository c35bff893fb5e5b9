"""Runtime settings: sample rates and window size."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace

MIN_SAMPLE_RATE_MS = 10

ENV_SAMPLE_RATE = "PANELSTAT_SAMPLE_RATE_MS"
ENV_WINDOW_SIZE = "PANELSTAT_WINDOW_SIZE"
ENV_GPU_SAMPLE_RATE = "PANELSTAT_GPU_SAMPLE_RATE_MS"


def _env_int(env: Mapping[str, str], name: str) -> int | None:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(slots=True, frozen=True)
class Settings:
    """
    Sampling settings shared by every indicator.

    ``sample_rate_ms`` is the tick period of the procfs-backed indicators.
    The GPU indicator runs a helper process per tick and has its own,
    slower period. ``window_size`` overrides the one-second window that is
    otherwise derived from the rate.
    """

    sample_rate_ms: int = 60
    window_size: int | None = None
    gpu_sample_rate_ms: int = 1000

    def __post_init__(self) -> None:
        # Clamp rather than reject, like a poll-rate setter would
        object.__setattr__(self, "sample_rate_ms", max(MIN_SAMPLE_RATE_MS, self.sample_rate_ms))
        object.__setattr__(
            self, "gpu_sample_rate_ms", max(MIN_SAMPLE_RATE_MS, self.gpu_sample_rate_ms)
        )
        if self.window_size is not None:
            object.__setattr__(self, "window_size", max(1, self.window_size))

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from ``PANELSTAT_*`` environment variables."""
        env = os.environ if env is None else env
        defaults = cls()
        sample_rate = _env_int(env, ENV_SAMPLE_RATE)
        gpu_sample_rate = _env_int(env, ENV_GPU_SAMPLE_RATE)
        return cls(
            sample_rate_ms=defaults.sample_rate_ms if sample_rate is None else sample_rate,
            window_size=_env_int(env, ENV_WINDOW_SIZE),
            gpu_sample_rate_ms=(
                defaults.gpu_sample_rate_ms if gpu_sample_rate is None else gpu_sample_rate
            ),
        )

    def override(
        self,
        sample_rate_ms: int | None = None,
        window_size: int | None = None,
        gpu_sample_rate_ms: int | None = None,
    ) -> "Settings":
        """Return a copy with every non-None argument applied."""
        changes = {
            key: value
            for key, value in [
                ("sample_rate_ms", sample_rate_ms),
                ("window_size", window_size),
                ("gpu_sample_rate_ms", gpu_sample_rate_ms),
            ]
            if value is not None
        }
        return replace(self, **changes)
