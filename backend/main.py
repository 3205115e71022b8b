"""
API layer - FastAPI application exposing chat, retrieval, structured output,
ingestion and agent endpoints.
Following SOLID:
- Single Responsibility - Controllers are thin, delegate to services.
- Dependency Inversion - Controllers receive services through FastAPI dependencies.

Every client is built per request from a fresh read of the environment.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import convert_to_messages

from config import AppConfig, ProviderConfig
from domain.errors import AppError, InvalidRequestError, UpstreamProviderError
from domain.models import AgentRequest, ChatRequest, IngestRequest
from rag.chunking import MarkdownChunker
from rag.config import RAGConfig
from rag.ingestion_service import IngestionService, ensure_ingest_allowed
from rag.retrieval_service import RetrievalService, RETRIEVAL_TEMPERATURE
from rag.vector_store import create_vector_store
from services.agent import run_agent, AGENT_TEMPERATURE
from services.chat_service import ChatService, CHAT_TEMPERATURE
from services.model_selection import ProviderSelector
from services.pirate_graph import build_pirate_graph
from services.streaming import ndjson_lines, prime_stream
from services.structured_output import StructuredOutputService, STRUCTURED_TEMPERATURE
from services.tool_actions import execute_tool, TOOL_TEMPERATURE
import services.tools_langchain as tools_langchain

load_dotenv()
app_config = AppConfig.from_env()

# Configure logging
logging.basicConfig(
    level=app_config.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

NDJSON = "application/x-ndjson"
TEXT = "text/plain; charset=utf-8"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - wire tool clients on startup."""
    logger.info("Initializing application...")
    tools_langchain.initialize_tools()
    if app_config.demo_mode:
        logger.info("Demo mode enabled: ingestion is disabled")
    logger.info("Application initialized successfully")

    yield

    logger.info("Application shutting down...")


# Create FastAPI app
app = FastAPI(
    title="LLM Gateway",
    description="Chat, retrieval and agent endpoints over Google Generative AI or OpenAI",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=app_config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["x-sources", "x-message-index"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Render application errors as {"error": message} with their status."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def _upstream(operation: str, exc: Exception) -> UpstreamProviderError:
    logger.error(f"{operation} error: {exc}", exc_info=True)
    return UpstreamProviderError.from_exception(exc)


# ============================================================================
# Dependencies
# ============================================================================

def get_app_config() -> AppConfig:
    return AppConfig.from_env()


def get_provider_config() -> ProviderConfig:
    return ProviderConfig.from_env()


def get_rag_config() -> RAGConfig:
    return RAGConfig.from_env()


def get_chat_service(
    provider_config: ProviderConfig = Depends(get_provider_config)
) -> ChatService:
    llm = ProviderSelector(provider_config).chat_model(CHAT_TEMPERATURE)
    return ChatService(llm, provider_config)


def get_retrieval_service(
    provider_config: ProviderConfig = Depends(get_provider_config),
    rag_config: RAGConfig = Depends(get_rag_config)
) -> RetrievalService:
    selector = ProviderSelector(provider_config)
    try:
        vector_store = create_vector_store(rag_config.vector_store)
    except Exception as e:
        raise _upstream("Vector store", e) from e
    return RetrievalService(
        llm=selector.chat_model(RETRIEVAL_TEMPERATURE),
        embeddings=selector.embeddings(),
        vector_store=vector_store,
        config=rag_config.retrieval
    )


def get_structured_output_service(
    provider_config: ProviderConfig = Depends(get_provider_config)
) -> StructuredOutputService:
    llm = ProviderSelector(provider_config).chat_model(STRUCTURED_TEMPERATURE)
    return StructuredOutputService(llm)


def require_ingest_allowed(app_config: AppConfig = Depends(get_app_config)) -> None:
    ensure_ingest_allowed(app_config)


def get_ingestion_service(
    _: None = Depends(require_ingest_allowed),
    provider_config: ProviderConfig = Depends(get_provider_config),
    rag_config: RAGConfig = Depends(get_rag_config)
) -> IngestionService:
    embeddings = ProviderSelector(provider_config).embeddings()
    try:
        vector_store = create_vector_store(rag_config.vector_store)
    except Exception as e:
        raise _upstream("Vector store", e) from e
    return IngestionService(
        chunker=MarkdownChunker(rag_config.chunking),
        embeddings=embeddings,
        vector_store=vector_store
    )


def get_agent_model(
    provider_config: ProviderConfig = Depends(get_provider_config)
) -> BaseChatModel:
    return ProviderSelector(provider_config).chat_model(AGENT_TEMPERATURE)


def get_tool_model(
    provider_config: ProviderConfig = Depends(get_provider_config)
) -> BaseChatModel:
    return ProviderSelector(provider_config).chat_model(TOOL_TEMPERATURE)


# ============================================================================
# Routes
# ============================================================================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "LLM Gateway is running"}


@app.post("/api/chat")
async def chat(request: ChatRequest, service: ChatService = Depends(get_chat_service)):
    """Stream a reply to the latest message, with earlier turns as context."""
    try:
        chunks = await prime_stream(service.stream(request.messages))
    except AppError:
        raise
    except Exception as e:
        raise _upstream("Chat API", e) from e

    return StreamingResponse(chunks, media_type=TEXT)


@app.post("/api/chat/retrieval")
async def chat_retrieval(
    request: ChatRequest,
    service: RetrievalService = Depends(get_retrieval_service)
):
    """
    Answer the latest message from stored documents.

    Headers:
    - x-message-index: position of the reply in the conversation
    - x-sources: base64 JSON list of truncated source documents
    """
    try:
        plan = await service.prepare(request.messages)
        chunks = await prime_stream(service.stream_answer(plan))
    except AppError:
        raise
    except Exception as e:
        raise _upstream("Retrieval API", e) from e

    return StreamingResponse(chunks, media_type=TEXT, headers=plan.headers)


@app.post("/api/chat/structured_output")
async def chat_structured_output(
    request: ChatRequest,
    service: StructuredOutputService = Depends(get_structured_output_service)
):
    """Extract tone, entity, word count and a reply from the latest message."""
    current = request.current_message
    if current is None:
        raise InvalidRequestError("messages must contain at least one message")

    try:
        result = await service.extract(current.content)
    except AppError:
        raise
    except Exception as e:
        raise _upstream("Structured output API", e) from e

    return JSONResponse(result, status_code=200)


@app.post("/api/retrieval/ingest")
async def ingest(
    request: IngestRequest,
    service: IngestionService = Depends(get_ingestion_service)
):
    """Split text into chunks, embed them and store them. Disabled in demo mode."""
    try:
        await service.ingest_text(request.text)
    except AppError:
        raise
    except Exception as e:
        raise _upstream("Ingest API", e) from e

    return {"ok": True}


@app.post("/api/agent")
async def agent(request: AgentRequest, llm: BaseChatModel = Depends(get_agent_model)):
    """Stream every agent execution event as newline-delimited JSON."""
    stream = run_agent(request.input, llm=llm)
    return StreamingResponse(ndjson_lines(stream), media_type=NDJSON)


@app.post("/api/tools")
async def tools(
    request: AgentRequest,
    llm: BaseChatModel = Depends(get_tool_model),
    provider_config: ProviderConfig = Depends(get_provider_config)
):
    """Stream the weather tool output as newline-delimited JSON."""
    stream = execute_tool(request.input, wso=request.wso, llm=llm, provider_config=provider_config)
    return StreamingResponse(ndjson_lines(stream), media_type=NDJSON)


@app.post("/api/langgraph/agent")
async def langgraph_agent(request: ChatRequest, llm: BaseChatModel = Depends(get_agent_model)):
    """Run the pirate graph over the conversation and return the final state."""
    if not request.messages:
        raise InvalidRequestError("messages must contain at least one message")

    try:
        graph = build_pirate_graph(llm)
        state = await graph.ainvoke({
            "messages": convert_to_messages([m.model_dump() for m in request.messages])
        })
    except AppError:
        raise
    except Exception as e:
        raise _upstream("LangGraph agent", e) from e

    messages: List[Dict[str, Any]] = [
        {"role": message.type, "content": message.content}
        for message in state["messages"]
    ]
    return {"messages": messages, "timestamp": state.get("timestamp")}
