import os

# Settings are read at import time; keep local .env credentials out of tests.
os.environ["PERPLEXITY_API_KEY"] = "test-perplexity-key"
os.environ["LLM_API_KEY"] = "test-llm-key"
os.environ["SUPABASE_URL"] = "https://test.supabase.co"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-service-role-key"
os.environ["CORS_ORIGINS"] = "*"
os.environ.setdefault("APP_LOG_LEVEL", "WARNING")
