"""Main FastAPI application."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clawagent import __version__
from clawagent.api.endpoints import router
from clawagent.services.runtime import shutdown_conversation_service
from clawagent.utils.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    setup_logging()
    yield
    await shutdown_conversation_service()


app = FastAPI(
    title="ClawAgent",
    description="Conversational agent gateway: chat with an LLM that can call tools and skills.",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Chat",
            "description": "Run agent turns and manage conversation sessions.",
        },
        {
            "name": "Health",
            "description": "Service health monitoring and status checks.",
        },
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("clawagent.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
