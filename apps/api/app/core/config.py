from dataclasses import dataclass
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="elastic-personalization", validation_alias="APP_NAME")
    app_env: str = Field(default="dev", validation_alias="APP_ENV")
    app_port: int = Field(default=8000, validation_alias="APP_PORT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    database_url: str = Field(validation_alias="DATABASE_URL")

    elasticsearch_url: str = Field(default="http://localhost:9200", validation_alias="ELASTICSEARCH_URL")
    elasticsearch_index: str = Field(default="content", validation_alias="ELASTICSEARCH_INDEX")
    elasticsearch_username: str | None = Field(default=None, validation_alias="ELASTICSEARCH_USERNAME")
    elasticsearch_password: str | None = Field(default=None, validation_alias="ELASTICSEARCH_PASSWORD")
    elasticsearch_timeout_seconds: float = Field(default=10.0, validation_alias="ELASTICSEARCH_TIMEOUT_SECONDS")

    share_weight: float = Field(default=5.0, ge=0, validation_alias="PERSONALIZATION_SHARE_WEIGHT")
    comment_weight: float = Field(default=4.0, ge=0, validation_alias="PERSONALIZATION_COMMENT_WEIGHT")
    like_weight: float = Field(default=3.0, ge=0, validation_alias="PERSONALIZATION_LIKE_WEIGHT")
    follow_weight: float = Field(default=4.5, ge=0, validation_alias="PERSONALIZATION_FOLLOW_WEIGHT")
    preference_weight: float = Field(default=2.0, ge=0, validation_alias="PERSONALIZATION_PREFERENCE_WEIGHT")
    interest_weight: float = Field(default=1.5, ge=0, validation_alias="PERSONALIZATION_INTEREST_WEIGHT")

    bootstrap_search_index: bool = Field(default=True, validation_alias="BOOTSTRAP_SEARCH_INDEX")
    seed_demo_data: bool = Field(default=False, validation_alias="SEED_DEMO_DATA")


settings = Settings()


@dataclass(frozen=True)
class PersonalizationWeights:
    share: float = 5.0
    comment: float = 4.0
    like: float = 3.0
    follow: float = 4.5
    preference: float = 2.0
    interest: float = 1.5


@lru_cache(maxsize=1)
def get_personalization_weights() -> PersonalizationWeights:
    return PersonalizationWeights(
        share=settings.share_weight,
        comment=settings.comment_weight,
        like=settings.like_weight,
        follow=settings.follow_weight,
        preference=settings.preference_weight,
        interest=settings.interest_weight,
    )
