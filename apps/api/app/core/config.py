from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_env: str = "dev"
    app_name: str = "LIFT"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    database_url: str = "postgresql+psycopg://app:app@db:5432/lift"

    jwt_secret: str = "change-me"

    # Fallback LIFT share (percent) for BASIC contributions when the
    # basic_contribution_split_lift setting is missing or unusable
    default_lift_split: float = 50.0

    # Middleware configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR
    log_format: str = "json"  # json or text
    enable_request_logging: bool = True
    cors_origins: str = ""  # Comma-separated list of allowed origins
    enable_gzip: bool = True

    # Metrics configuration (CloudWatch EMF log lines)
    enable_metrics: bool = True
    metrics_namespace: str = ""  # defaults to app_name

    model_config = {
        "env_file": "../.env",
        "env_file_encoding": "utf-8",
    }


settings = Settings()
