from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Redis configuration (match result cache)
    redis_url: str = "redis://localhost:6379"
    match_cache_ttl_seconds: int = 3600

    # Match score weights, must sum to 1.0
    weight_skills: float = 0.35
    weight_experience: float = 0.25
    weight_location: float = 0.15
    weight_salary: float = 0.10
    weight_culture: float = 0.10
    weight_technology: float = 0.05

    # Recommendation settings
    recommend_min_score: int = 60
    recommend_default_limit: int = 10

    # Leading share of job.requirements treated as must-have
    critical_requirement_ratio: float = 0.7
    # Share of target jobs a missing skill must appear in to count as critical
    critical_gap_ratio: float = 0.5

    # Studio search index settings
    search_max_prefix_length: int = 12
    fuzzy_threshold_ratio: float = 0.4

    cors_origins: list[str] = ["http://localhost:3000"]

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
