"""Engine configuration with defaults from the reel and lever tuning tables."""
import math

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine settings, overridable via SLOTCORE_* environment variables."""

    model_config = ConfigDict(env_prefix="SLOTCORE_")

    debug: bool = False
    log_level: str = "INFO"

    # Override tables
    tables_dir: str = "payout_tables"
    packing_threshold: int = 5000  # overrides above this are bit-packed
    packing_factor: int = 10  # keys sharing key // 10 share one slot
    chunk_size: int = 1000
    chunked_min_reels: int = 7  # reel counts from here on default to chunked

    # Display-only credits for the reward countdown
    jackpot_display_credits: int = 500

    # Frame clock
    tick_hz: int = 60

    # Reel geometry
    reel_positions: int = 32
    symbol_size: int = 100
    row_count: int = 3

    # Reel physics, in px per tick (scaled from a 32px symbol grid)
    max_reel_speed: float = 100.0
    spinup_acceleration: float = 2 * (100 / 32)
    spindown_acceleration: float = 1 * (100 / 32)
    min_spin_rotations: int = 2

    # Reward countdown, in ticks per credit
    reward_delay: int = 3
    reward_delay_grand: int = 1
    reward_grand_threshold: int = 25

    # Sequential reveal
    reel_stop_interval_ms: int = 400

    # Lever
    lever_base_x: float = 150.0
    lever_base_y: float = 200.0
    lever_length: float = 120.0
    lever_handle_radius: float = 25.0
    lever_max_angle: float = math.pi
    lever_pull_threshold: float = 0.9
    lever_pull_duration_ms: int = 800
    lever_return_duration_ms: int = 500
    lever_settle_delay_ms: int = 1000

    # Demo cycle phases
    demo_idle_ms: int = 2500
    demo_result_ms: int = 3000
    demo_cycle_pause_ms: int = 1500


settings = Settings()


def ms_to_ticks(ms: float, hz: int | None = None) -> int:
    """Convert a duration to a whole number of frame ticks (at least one)."""
    rate = hz or settings.tick_hz
    return max(1, round(ms * rate / 1000))
