from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """애플리케이션 설정"""

    environment: str = "development"

    # OpenAI 설정 - 릴리스 노트 생성용
    openai_api_key: str = ""
    openai_model: str = "gpt-4.1-mini"
    openai_timeout: float = 120.0
    openai_temperature: float = 0.2

    # GitHub - merged PR diff 소스
    github_token: str = ""
    github_repo_url: str = "https://github.com/openai/openai-node"
    github_timeout: float = 60.0
    github_max_concurrent_requests: int = 5

    # diff 페이지 설정
    diffs_per_page: int = 10
    diff_max_length_prompt: int = 20000

    # Rate limit 설정 (slowapi 형식)
    rate_limit_default: str = "120/minute"
    rate_limit_generate_notes: str = "30/minute"

    # 로깅 설정
    log_level: str = "INFO"

    # Langfuse 설정
    langfuse_public_key: str = ""
    langfuse_secret_key: str = ""
    langfuse_base_url: str = "https://cloud.langfuse.com"

    # 클라이언트 설정
    api_base_url: str = "http://localhost:8000"
    client_timeout: float = 180.0
    notes_cache_path: Path = Path(".diff_digest/local_storage.json")
    notes_cache_ttl_hours: float = 24.0
    cache_control_path: Path = Path("public/cache-control.json")
    batch_delay_seconds: float = 1.0

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def validate_for_production(self) -> list[str]:
        """프로덕션 환경에서 필수 설정 검증 후 누락된 항목 반환"""
        errors = []
        if not self.openai_api_key:
            errors.append("OPENAI_API_KEY")
        if not self.github_repo_url:
            errors.append("GITHUB_REPO_URL")
        return errors


settings = Settings()
