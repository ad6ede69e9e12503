from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Valuation (dollars per mile); passed explicitly into every engine call
    per_mile_value: float = Field(default=0.015, gt=0, le=1)

    # Award provider
    award_provider_base_url: str = ""
    award_provider_api_key: str = ""
    award_provider_timeout: float = 30.0
    award_provider_max_retries: int = 3

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # Enrichment
    enrichment_cache_ttl: int = 15 * 60  # 15 minutes
    enrichment_batch_size: int = 2

    # CORS
    cors_origins: str = "http://localhost:5173"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
