"""
Engine Settings

All tunable values for candidate generation, the worker offload path and
result bookkeeping. Every value has an explicit meaning and default.
"""

import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, Optional

log = logging.getLogger(__name__)


@dataclass
class EngineSettings:
    """
    Configurable settings for a SiteFinder instance.

    Values can be loaded from / saved to a JSON file.
    """

    # Generation
    default_target_count: int = 1000
    """How many candidate sites to generate when the caller does not say."""

    default_min_area: float = 2.0
    """Lower bound (hectares) passed to the area generator by default."""

    default_max_area: float = 50.0
    """Upper bound (hectares) passed to the area generator by default."""

    near_reference_probability: float = 0.7
    """Chance that a candidate is placed near an existing AD plant rather than anywhere in the UK."""

    near_reference_min_distance_m: float = 5000.0
    """Minimum distance (meters) from the chosen reference plant."""

    near_reference_max_distance_m: float = 20000.0
    """Maximum distance (meters) from the chosen reference plant."""

    enforce_boundaries: bool = False
    """If True, candidates outside every boundary polygon are dropped."""

    # Worker offload
    use_worker: bool = True
    """If True, register the background site analysis worker."""

    worker_timeout_seconds: float = 30.0
    """Seconds to wait for the worker before falling back to the calling thread."""

    progress_interval: int = 100
    """The worker reports progress after this many sites."""

    # Bookkeeping
    history_limit: int = 10
    """How many analysis summaries to keep. Oldest are evicted first."""

    store_path: str = "site_finder.db"
    """SQLite file holding saved filter presets. ':memory:' keeps them in-process."""

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "EngineSettings":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        unknown = set(data) - set(known)
        if unknown:
            log.warning(f"Ignoring unknown settings: {sorted(unknown)}")
        return cls(**known)

    def save(self, path: str):
        """Save settings to a JSON file."""
        config_path = Path(path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        log.info(f"Saved engine settings to {config_path}")

    @classmethod
    def load(cls, path: Optional[str]) -> "EngineSettings":
        """Load settings from a JSON file, or defaults if there is none."""
        if not path:
            return cls()
        config_path = Path(path)
        if not config_path.exists():
            log.info(f"No settings file at {config_path}, using defaults")
            return cls()
        with open(config_path, "r") as f:
            return cls.from_dict(json.load(f))
