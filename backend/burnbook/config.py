"""应用配置管理，从环境变量加载配置"""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用配置类"""

    # Database
    database_url: str

    # Redis (Celery broker / backend)
    redis_url: str = "redis://localhost:6379/0"

    # LLM API (OpenAI兼容协议，未配置时使用本地确定性实现)
    llm_api_key: str = ""
    llm_api_base_url: str = ""
    llm_model: str = "gpt-4o-mini"
    llm_timeout: float = 60.0

    # Reddit
    reddit_user_agent: str = "BurnBook/1.0 (Sentiment Analysis Tool)"
    reddit_timeout: int = 15
    reddit_max_retries: int = 3
    reddit_base_delay: float = 1.0

    # Analysis
    min_text_length: int = 10
    classifier_max_chars: int = 5120
    query_sample_size: int = 20
    query_max_sources: int = 5

    # App Config
    debug: bool = False
    log_level: str = "INFO"

    # Scheduler
    scheduler_enabled: bool = False
    summary_refresh_minutes: int = 10

    # 超过该时长仍处于 processing 的任务视为已中断（同时作为 Celery 任务硬超时）
    job_stale_minutes: int = 30

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            env_settings,
            dotenv_settings,
            init_settings,
            file_secret_settings,
        )


@lru_cache
def get_settings() -> Settings:
    """获取配置单例"""
    return Settings()
