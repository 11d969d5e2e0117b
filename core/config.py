# core/config.py

from typing import Optional

from pydantic_settings import BaseSettings


class GravityChatConfig(BaseSettings):
    """Configuration for the GravityChat universe and its transport."""

    # Clustering
    visibility_radius: int = 150
    spawn_radius_tiers: list[tuple[int, int]] = [(5, 200), (15, 500), (50, 1000)]
    max_spawn_radius: int = 2000
    gravity_offset_x: tuple[int, int] = (-120, -60)
    gravity_offset_y: tuple[int, int] = (60, 120)

    # Randomness (None = seed from OS entropy)
    random_seed: Optional[int] = None

    # Logging
    log_level: str = "INFO"
    json_logs: bool = True

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    class Config:
        env_file = ".env"
        env_prefix = "GRAVITYCHAT_"
