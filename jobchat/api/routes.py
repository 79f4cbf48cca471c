"""
FastAPI Routes for jobchat

REST endpoints for the embeddable job-search chat widget.

Run with: uvicorn jobchat.app:app --reload
"""

from typing import Optional
from datetime import datetime, timezone
import logging

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from jobchat import __version__
from jobchat.core.agent_client import (
    AgentInvocationError, ChatHistoryError, get_agent_client, get_chat_history_client
)
from jobchat.core.config import Settings, get_settings
from jobchat.core.schemas import (
    ChatRequest, ChatResponse, ErrorResponse, SaveChatRequest, ParseRequest, ParseResponse
)
from jobchat.parsing.query_filters import (
    parse_filters_from_query, should_parse_filters_from_query, is_asking_about_filters
)
from jobchat.services.chat_service import ChatService, parse_agent_output

logger = logging.getLogger(__name__)

CORS_METHODS = "GET, POST, OPTIONS"
CORS_HEADERS = "Content-Type, Authorization"


def error_response(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


def cors_headers(origin: Optional[str], settings: Settings) -> dict:
    """Echo an allowed origin, otherwise answer with the default origin."""
    allowed = origin if origin and origin in settings.cors.origin_list else settings.cors.default_origin
    return {
        "Access-Control-Allow-Origin": allowed,
        "Access-Control-Allow-Methods": CORS_METHODS,
        "Access-Control-Allow-Headers": CORS_HEADERS,
        "Vary": "Origin",
    }


# ============================================================================
# Dependencies
# ============================================================================

def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def get_history_client(request: Request):
    return request.app.state.history_client


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


# ============================================================================
# App Factory
# ============================================================================

def create_app(
    settings: Optional[Settings] = None,
    chat_service: Optional[ChatService] = None,
    history_client=None
) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Application settings (defaults to the global settings)
        chat_service: Pre-built chat service; built from settings when omitted
        history_client: Pre-built chat history client

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="jobchat API",
        description="Job-search chat proxy in front of a Bedrock agent",
        version=__version__
    )

    # AWS clients are built once per app and shared through app.state
    app.state.settings = settings
    app.state.chat_service = chat_service or ChatService(get_agent_client(settings), settings)
    app.state.history_client = history_client or get_chat_history_client(settings)

    # ------------------------------------------------------------------------
    # CORS
    # ------------------------------------------------------------------------

    @app.middleware("http")
    async def apply_cors(request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            try:
                response = await call_next(request)
            except Exception as e:
                logger.exception(f"Unhandled error on {request.url.path}: {e}")
                response = error_response(500, "Internal server error", str(e))
        response.headers.update(cors_headers(request.headers.get("origin"), settings))
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
        return error_response(400, "Invalid request body", str(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        # Runs outside the CORS middleware, so the headers are added here
        logger.exception(f"Unhandled error on {request.url.path}: {exc}")
        response = error_response(500, "Internal server error", str(exc))
        response.headers.update(cors_headers(request.headers.get("origin"), settings))
        return response

    # ------------------------------------------------------------------------
    # Health Check
    # ------------------------------------------------------------------------

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__
        }

    # ------------------------------------------------------------------------
    # Chat Endpoints
    # ------------------------------------------------------------------------

    @app.post("/api/chat", response_model=ChatResponse)
    def send_chat_message(body: ChatRequest, service: ChatService = Depends(get_chat_service)):
        """
        Send a chat message to the agent and get parsed jobs and filters back.

        This is the main interaction endpoint for the widget.
        """
        if not body.message or not body.message.strip():
            return error_response(400, "Message is required")

        try:
            return service.handle(body)
        except AgentInvocationError as e:
            logger.error(f"Chat error: {e}")
            return error_response(500, "Error communicating with the AI agent.", str(e))

    @app.post("/api/save-chat")
    def save_chat(body: SaveChatRequest, history=Depends(get_history_client)):
        """Forward one chat turn to the history Lambda."""
        if not body.session_id or not body.user_input or not body.agent_response:
            return error_response(
                400,
                "Missing required fields: session_id, user_input, and agent_response are required."
            )

        record = body.model_dump()
        record["user_id"] = body.user_id or f"guest_{body.session_id}"

        try:
            return history.save(record)
        except ChatHistoryError as e:
            if e.function_error:
                return error_response(502, "Error processing request in Lambda.", str(e))
            logger.error(f"Save chat error: {e}")
            return error_response(500, "Failed to save chat history", str(e))

    # ------------------------------------------------------------------------
    # Parsing Endpoints
    # ------------------------------------------------------------------------

    @app.post("/api/parse", response_model=ParseResponse)
    def parse_text(body: ParseRequest, app_settings: Settings = Depends(get_app_settings)):
        """Run the extraction core on agent output without calling the agent."""
        if body.text is None:
            return error_response(400, "Text is required")

        parsed = parse_agent_output(body.text, app_settings)
        return ParseResponse(
            message=parsed.message,
            jobs=parsed.jobs,
            filters=parsed.filters,
            content_type=parsed.content_type,
        )

    @app.get("/api/filters/hints")
    async def filter_hints(q: str = ""):
        """Keyword filter hints for a user query."""
        return {
            "query": q,
            "shouldParse": should_parse_filters_from_query(q),
            "askingAboutFilters": is_asking_about_filters(q),
            "filters": parse_filters_from_query(q),
        }

    logger.info(f"{settings.app_name} API ready ({settings.environment})")
    return app
