import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from paperhub.api.routes import extraction, papers, universities, workspace
from paperhub.config import config
from paperhub.exceptions import PaperHubError

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="PaperHub Service",
    description="Exam paper extraction, publishing and answer workspaces",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=config.CORS_ALLOW_CREDENTIALS,
    allow_methods=config.CORS_ALLOW_METHODS,
    allow_headers=config.CORS_ALLOW_HEADERS,
)


@app.exception_handler(PaperHubError)
async def paperhub_error_handler(request: Request, exc: PaperHubError):
    """Answer PaperHub errors as {"error": message} with the error's status"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.details})")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


app.include_router(extraction.router)
app.include_router(papers.router)
app.include_router(workspace.router)
app.include_router(universities.router)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "ok": True,
        "status": "healthy",
        "service": "paperhub",
        "store": config.STORE_BACKEND,
        "model": config.GEMINI_GENERATION_MODEL,
    }


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "service": "PaperHub Service",
        "version": "1.0.0",
        "endpoints": {
            "health": "GET /health",
            "parse": "POST /parseExamPaper",
            "published": "GET /papers/published",
            "search": "GET /papers/search?term=",
            "papers": "POST /papers, PUT /papers/{id}, GET /papers/{id}",
            "workspace": "GET /workspace, POST /workspace/{paper_id}",
            "answers": "GET|PUT|DELETE /workspace/answers/{id}",
            "universities": "GET /universities",
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
