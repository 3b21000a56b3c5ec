"""
Slide Deck Generator - AI Presentation Service
Main entry point for the FastAPI application.

Turns a product name and target audience into a short AI-generated slide
deck: topic planning with Gemini, one Imagen illustration per topic rendered
by a small worker pool, PDF export and a presentation assistant chat.
"""

import os
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

# Load environment variables
load_dotenv()

# Configure Logfire early in startup
from src.utils.logfire_config import configure_logfire, instrument_fastapi
configure_logfire()

from config.settings import get_settings
from src.core.exceptions import ConfigurationError, EmptyDeckError
from src.handlers.websocket import GENERATION_FAILED_MESSAGE, WebSocketHandler
from src.models.deck import DeckRequest
from src.models.websocket_messages import DeckPayload, build_deck_payload
from src.services.container import DeckServices, build_services
from src.services.pdf_export import export_pdf, pdf_filename
from src.utils.logger import setup_logger

logger = setup_logger(__name__)

SERVICE_NAME = "slide-deck-generator"
VERSION = "1.0.0"


class DeckRequestBody(BaseModel):
    product_name: str = Field(..., description="Company or product name")
    audience: str = Field("", description="Target audience (optional)")


class ChatRequestBody(BaseModel):
    message: str


class ChatResponseBody(BaseModel):
    reply: Optional[str]


def _services(request: Request) -> DeckServices:
    return request.app.state.services


def _deck_request(body: DeckRequestBody) -> DeckRequest:
    try:
        return DeckRequest(product_name=body.product_name, audience=body.audience)
    except ValueError:
        raise HTTPException(status_code=422, detail="Please provide a company or product name.")


def create_app(services: Optional[DeckServices] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        services: Pre-built services (tests); built from settings at startup otherwise
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Handle startup and shutdown events."""
        logger.info("Starting Slide Deck Generator API...")

        if services is not None:
            app.state.services = services
        else:
            try:
                app.state.services = build_services(settings)
            except ConfigurationError as e:
                logger.error(f"FATAL: {str(e)}")
                logger.error("Please set one of these in your .env file:")
                logger.error("  GOOGLE_API_KEY=your-key-here")
                logger.error("  GCP_ENABLED=true and GCP_PROJECT_ID=your-project")
                raise RuntimeError("Cannot start without AI API configuration. See logs for details.") from e

        app.state.ws_handler = WebSocketHandler(app.state.services)
        yield
        logger.info("Shutting down Slide Deck Generator API...")

    app = FastAPI(
        title="Slide Deck Generator API",
        version=VERSION,
        description="AI-generated introductory slide decks for products and companies",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    instrument_fastapi(app)

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Slide Deck Generator API",
            "version": VERSION,
            "endpoints": {
                "generate": "POST /api/decks",
                "pdf": "POST /api/decks/pdf",
                "chat": "POST /api/chat",
                "websocket": "/ws?session_id={session_id}",
                "health": "/health"
            }
        }

    @app.get("/health")
    async def health_check(request: Request):
        """Basic health check endpoint."""
        services = _services(request)
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": VERSION,
            "environment": settings.APP_ENV,
            "cached_decks": len(services.cache),
            "pool_width": services.orchestrator.pool_width
        }

    @app.post("/api/decks", response_model=DeckPayload)
    async def generate_deck(body: DeckRequestBody, request: Request):
        """Generate (or return the cached) deck for a product and audience."""
        deck_request = _deck_request(body)
        try:
            outcome = await _services(request).orchestrator.generate(deck_request)
        except EmptyDeckError as e:
            logger.error(f"Deck generation failed for '{deck_request.product_name}': {e}")
            raise HTTPException(status_code=502, detail=GENERATION_FAILED_MESSAGE)
        return build_deck_payload(deck_request.product_name, deck_request.audience, outcome)

    @app.post("/api/decks/pdf")
    async def download_pdf(body: DeckRequestBody, request: Request):
        """Generate (or reuse) the deck and return it as a PDF attachment."""
        deck_request = _deck_request(body)
        try:
            outcome = await _services(request).orchestrator.generate(deck_request)
        except EmptyDeckError as e:
            logger.error(f"PDF download failed for '{deck_request.product_name}': {e}")
            raise HTTPException(status_code=502, detail=GENERATION_FAILED_MESSAGE)

        filename = pdf_filename(deck_request.product_name)
        return Response(
            content=export_pdf(outcome.deck),
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'}
        )

    @app.post("/api/chat", response_model=ChatResponseBody)
    async def chat(body: ChatRequestBody, request: Request):
        """Send a message to the shared presentation assistant."""
        reply = await _services(request).assistant.send(body.message)
        return ChatResponseBody(reply=reply)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket, session_id: str):
        """Stream deck generation progress and assistant chat."""
        if not session_id:
            logger.error("WebSocket connection attempted without session_id")
            await websocket.close(code=1008, reason="Missing required parameters")
            return
        await websocket.app.state.ws_handler.handle_connection(websocket, session_id)

    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    port = int(os.getenv("PORT", str(settings.API_PORT)))
    log_level = "debug" if settings.DEBUG else "info"

    uvicorn.run(
        "main:app",
        host=settings.API_HOST,
        port=port,
        log_level=log_level,
        reload=settings.DEBUG
    )
