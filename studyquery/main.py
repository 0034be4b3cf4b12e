"""FastAPI application entry point for the study query builder."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from studyquery.config import get_settings
from studyquery.limits import limiter
from studyquery.routes import editor, studies

settings = get_settings()

app = FastAPI(
    title="Study Query Builder API",
    description="Boolean query editor with term chips and study lookup",
    version="1.0.0"
)

# Configure rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(editor.router, prefix="/editor", tags=["editor"])
app.include_router(studies.router, prefix="/studies", tags=["studies"])


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "Study Query Builder API is running", "status": "healthy"}


@app.get("/health")
async def health_check():
    """Health check reporting the configured results service."""
    return {
        "status": "healthy",
        "studies_api_base": settings.studies_api_base,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
