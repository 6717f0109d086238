from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import URL


def _env(name: str) -> AliasChoices:
    return AliasChoices(f"PENPALS_{name}", name)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PENPALS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    port: int = Field(default=3000, validation_alias=_env("PORT"))
    jwt_secret: str = Field(validation_alias=_env("JWT_SECRET"))
    app_env: str = Field(
        default="development",
        validation_alias=AliasChoices("PENPALS_APP_ENV", "APP_ENV", "NODE_ENV"),
    )

    database_url: str | None = Field(default=None, validation_alias=_env("DATABASE_URL"))
    db_host: str = Field(default="localhost", validation_alias=_env("DB_HOST"))
    db_port: int = Field(default=5432, validation_alias=_env("DB_PORT"))
    db_name: str = Field(default="north_pole_penpals", validation_alias=_env("DB_NAME"))
    db_user: str = Field(default="postgres", validation_alias=_env("DB_USER"))
    db_password: str = Field(default="password", validation_alias=_env("DB_PASSWORD"))

    redis_url: str | None = Field(default=None, validation_alias=_env("REDIS_URL"))

    frontend_url: str = Field(default="http://localhost:3000", validation_alias=_env("FRONTEND_URL"))
    static_dir: str | None = Field(default="public", validation_alias=_env("STATIC_DIR"))

    stripe_secret_key: str | None = Field(default=None, validation_alias=_env("STRIPE_SECRET_KEY"))
    stripe_webhook_secret: str | None = Field(default=None, validation_alias=_env("STRIPE_WEBHOOK_SECRET"))

    llm_provider_key: str = Field(default="openai", validation_alias=_env("LLM_PROVIDER_KEY"))
    openai_api_key: str | None = Field(default=None, validation_alias=_env("OPENAI_API_KEY"))
    llm_model: str = Field(default="gpt-3.5-turbo", validation_alias=_env("LLM_MODEL"))

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    @property
    def sqlalchemy_url(self) -> str | URL:
        if self.database_url:
            return self.database_url
        return URL.create(
            "postgresql+psycopg",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )

    @property
    def allowed_origins(self) -> list[str]:
        return [item.strip() for item in self.frontend_url.split(",") if item.strip()]


settings = Settings()
