from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    DEBUG: bool = False

    # CORS (the web UI is served from a separate origin)
    CORS_ORIGINS: str = "*"

    # Upstream credentials
    # Cloud Billing Catalog API key. Leave empty to always use the GCP static rates.
    GCP_API_KEY: str = ""
    # The AWS Price List query API only exists in a few regions.
    AWS_PRICING_API_REGION: str = "us-east-1"

    # Upstream timeouts
    UPSTREAM_TIMEOUT_SECONDS: float = 5.0
    PROVIDER_TIMEOUT_SECONDS: float = 30.0

    # Pricing cache
    PRICING_CACHE_TTL_SECONDS: int = 3600
    PRICING_CACHE_MAX_ENTRIES: int = 512

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def cors_origins(self) -> list:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()
