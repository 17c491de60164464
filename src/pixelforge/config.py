from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PIXELFORGE__",
        extra="ignore",
    )

    stability_api_key: Optional[str] = Field(
        None,
        validation_alias=AliasChoices(
            "stability_api_key", "STABILITY_API_KEY", "PIXELFORGE__STABILITY_API_KEY"
        ),
        description="API key for the Stability AI text-to-image API.",
    )
    api_host: str = Field(
        "https://api.stability.ai", description="Base URL of the upstream API."
    )
    engine_id: str = Field(
        "stable-diffusion-v1-6", description="Upstream engine used for generation."
    )
    max_retries: int = Field(
        2, ge=0, description="Retries after the first attempt on transient failure."
    )
    backoff_base_seconds: float = Field(
        1.0, ge=0, description="Delay before the first retry; doubles per retry."
    )
    request_timeout_seconds: float = Field(
        60.0, gt=0, description="Timeout for a single upstream attempt."
    )
    host: str = Field("0.0.0.0", description="Interface the web server binds to.")
    port: int = Field(5000, description="Port the web server listens on.")
    debug: bool = False
    server_url: str = Field(
        "http://localhost:5000",
        description="Web server used by the `generate` command.",
    )
    log_level: str = "INFO"

    @property
    def has_api_key(self) -> bool:
        return bool(self.stability_api_key and self.stability_api_key.strip())


settings = Settings()
