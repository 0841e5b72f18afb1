# innodraw/main.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from innodraw.api import router as api_router
from innodraw.core.config import settings
from innodraw.core.exceptions import GenerationFailure, ProjectNotFoundException, StorageFailure
from innodraw.core.limiter import limiter

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup Logic ---
    if not settings.GEMINI_API_KEY:
        print("Warning: GEMINI_API_KEY is not set. Generation and conversation requests will fail.")
    print(f"Project store: {settings.PROJECT_STORE_PATH}")
    try:
        yield
    finally:
        # --- Shutdown Logic ---
        print("InnoDraw API shut down.")


app = FastAPI(
    title="InnoDraw AI API",
    description="Turns a short idea into an annotated, explorable 2D diagram.",
    version="1.0.0",
    lifespan=lifespan
)

# Add Limiter to the application state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Exempt all OPTIONS requests from rate limiting to prevent CORS preflight issues
app.state.limiter.exempt_methods = ["OPTIONS"]

allowed_origins = [
    "http://localhost:5173",
    "http://localhost:8000",
    "http://localhost:8080",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["Content-Type", "X-User-ID"],
)

@app.exception_handler(GenerationFailure)
async def generation_failure_handler(request: Request, exc: GenerationFailure):
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"message": exc.message},
    )

@app.exception_handler(StorageFailure)
async def storage_failure_handler(request: Request, exc: StorageFailure):
    logger.error("Storage failure during %s: %s", exc.operation, exc.message)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"message": exc.message, "operation": exc.operation},
    )

@app.exception_handler(ProjectNotFoundException)
async def project_not_found_exception_handler(request: Request, exc: ProjectNotFoundException):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"message": exc.message},
    )

app.include_router(api_router.router)

@app.get("/")
async def root():
    return {"message": "Welcome to the InnoDraw AI API"}

@app.get("/healthz", tags=["Health"], status_code=status.HTTP_200_OK)
async def health_check():
    """Returns the operational status of the service."""
    return {
        "status": "ok",
        "generation_configured": bool(settings.GEMINI_API_KEY),
    }
