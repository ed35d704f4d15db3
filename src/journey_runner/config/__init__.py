"""Journey configuration loading."""

from journey_runner.config.journey_config import (
    DEFAULT_CONFIG,
    apply_env_overrides,
    build_journey_config,
    load_config,
)

__all__ = ["DEFAULT_CONFIG", "apply_env_overrides", "build_journey_config", "load_config"]
