from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    # Convergence tracker (wallet cohort agreement)
    convergence_window_sec: float = 720.0  # 12 min sliding window

    # Pool history cache (liquidity drop / acceleration between polls)
    pool_history_max_age_sec: float = 720.0  # older readings count as absent
    pool_history_max_samples: int = 12
    pool_history_max_pools: int = 50_000

    # Social velocity
    velocity_window_size: int = 10
    velocity_min_delta: float = 6.0
    velocity_min_now: float = 20.0
    velocity_max_age_sec: float = 1800.0  # idle tokens are dropped
    velocity_max_tokens: int = 20_000

    # Decision tiers
    default_tier: str = "BASIC"
    # JSON, e.g. {"PRO": {"score_enter": 70, "rug_warning_threshold": 84}}
    tier_overrides: dict[str, dict[str, float | int | bool]] = {}

    # DexScreener
    dexscreener_max_rps: float = 4.0

    # HTTP API (browser extension backend)
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    api_cors_origins: list[str] = ["*"]
    api_rate_limit: str = "60/minute"
    api_debug: bool = False


settings = Settings()
