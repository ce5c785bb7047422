from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    app_name: str = "appforge-platform"
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    log_level: str = "INFO"

    database_url: str = "sqlite:///./appforge.db"
    redis_url: str = "redis://localhost:6379/0"

    llm_provider: str = "openai"
    openai_api_key: str | None = None
    anthropic_api_key: str | None = None
    openai_model: str = "gpt-4-turbo-preview"
    anthropic_model: str = "claude-3-opus-20240229"
    llm_timeout_seconds: float = 300.0
    llm_max_retries: int = 2

    workspaces_dir: str = "./data/workspaces"
    job_retention_days: int = 7
    max_file_chars: int = 10000

settings = Settings()
