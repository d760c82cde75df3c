from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"

    database_url: str = "sqlite+pysqlite:///./agileflow.db"
    redis_url: str = "redis://redis:6379/0"

    jwt_secret: str = "dev-secret-change-me"
    jwt_issuer: str = "agileflow"
    jwt_audience: str = "agileflow-api"
    jwt_expires_minutes: int = 60

    # only honoured when app_env == "dev" and the request has no bearer token
    dev_bearer_token: str | None = None

    # rate limiting (redis)
    rate_limit_enabled: bool = True
    rate_limit_invite_per_min: int = 20

    # when true, granting a role requires out-ranking it (owner exempt)
    rbac_enforce_rank_on_assignment: bool = False

settings = Settings()
