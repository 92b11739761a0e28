from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.errors import catch_unhandled_errors, register_exception_handlers
from app.api.routes import agents, insights, projects, strategy
from app.config import settings
from app.services.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"API keys status: perplexity={bool(settings.perplexity_api_key)} "
        f"llm={bool(settings.llm_api_key)} supabase={bool(settings.supabase_url)}"
    )
    yield


app = FastAPI(
    title="Market Research Agents",
    description="Sentiment, competitor and trend research agents with grounded, normalized output",
    version="0.1.0",
    lifespan=lifespan,
)

# Registered before CORS so unexpected 500s still carry CORS headers
app.middleware("http")(catch_unhandled_errors)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

register_exception_handlers(app)

# Routes
app.include_router(agents.router)
app.include_router(insights.router)
app.include_router(strategy.router)
app.include_router(projects.router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": "market-research"}
