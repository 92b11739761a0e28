from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Perplexity (mandatory at request time, checked by the dispatcher)
    perplexity_api_key: str = ""
    perplexity_base_url: str = "https://api.perplexity.ai"
    perplexity_model: str = "sonar"
    search_recency_filter: str = "month"  # hour | day | week | month | year
    search_temperature: float = 0.1
    search_top_p: float = 0.9
    search_max_tokens: int = 4000
    search_timeout_seconds: float = 60.0

    # Secondary LLM gateway (optional, OpenAI-compatible)
    llm_api_key: str = ""
    llm_base_url: str = "https://ai.gateway.lovable.dev/v1"
    llm_model: str = "google/gemini-2.5-flash"

    # Supabase
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # Data integrity
    zero_hallucination_policy: bool = True
    max_competitors: int = 5

    # App
    cors_origins: str = "*"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]


settings = Settings()
