"""
Service settings for the resolver itself, loaded from environment variables.
Tenant configuration is resolved separately by sitenv.resolver.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Settings for the resolver service, all prefixed with SITENV_."""
    
    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    
    # Environment files
    PROJECT_PATH: str = Field(
        default=".",
        description="Directory searched for .env, .env.dist and .env.dev files",
    )
    
    # Identity
    APP_NAME: str = Field(
        default="default",
        description="Machine name of the app being configured",
    )
    SITE_NAME: str = Field(
        default="default",
        description="Machine name of the site used when none is selected",
    )
    MULTISITE_DEFAULT_SITE_ALLOWED: bool = Field(
        default=False,
        description="Allow the 'default' site as a database name in multi-site installs",
    )
    
    class Config:
        env_prefix = "SITENV_"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()
