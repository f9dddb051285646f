from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", populate_by_name=True, extra="ignore")

    app_name: str = Field(default="Menu Pricing Engine", alias="APP_NAME")
    app_env: str = Field(default="dev", alias="APP_ENV")
    currency: str = Field(default="GTQ", alias="CURRENCY")
    currency_symbol: str = Field(default="Q", alias="CURRENCY_SYMBOL")
    timezone: str = Field(default="America/Guatemala", alias="PRICING_TIMEZONE")
    default_zone: str = Field(default="capital", alias="DEFAULT_ZONE")
    default_service_type: str = Field(default="pickup", alias="DEFAULT_SERVICE_TYPE")
    catalog_database_url: str = Field(default="sqlite:///./catalog.db", alias="CATALOG_DATABASE_URL")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    daily_special_label: str = Field(default="Sub del Día", alias="DAILY_SPECIAL_LABEL")


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
