from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Tool configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="OSMANAGE_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"
    log_json: bool = False
    kube_config_path: str | None = None
    field_manager: str = Field(default="osmanage", description="Field manager used for server-side apply")
    # Polling
    poll_interval_seconds: float = Field(default=2.0, ge=0, description="Fixed interval between health checks")
    instance_timeout_seconds: float = Field(default=180.0, gt=0, description="Wait for all instance pods to be ready")
    deployment_timeout_seconds: float = Field(default=180.0, gt=0, description="Wait for a deployment rollout")
    namespace_timeout_seconds: float = Field(default=300.0, gt=0, description="Wait for namespace deletion incl. finalizers")
    show_progress: bool = True
    # Well-known resources of an instance
    tls_secret_name: str = "tls-letsencrypt"
    image_deployment_name: str = "backendmanage"
    image_container_name: str = "backendmanage"
    image_template: str = Field(
        default="{registry}/openslides-backend:{tag}",
        description="Format string for the patched container image",
    )

    @computed_field
    @property
    def is_debug(self) -> bool:
        return self.log_level.upper() == "DEBUG"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
