import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.config import settings
from app.errors import AssessmentError
from app.routes import submissions, leaderboard, analytics, realtime
from app.utils.notification_manager import notification_manager

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version="1.0.0", description="Scoring, ranking and analytics for online assessments")

# CORS middleware for cross-origin requests (adjust origins for production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(AssessmentError)
async def assessment_error_handler(request: Request, exc: AssessmentError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.kind, "message": exc.message})

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "internal_error", "message": "Internal server error"})

# Include routers with prefixes and tags
app.include_router(submissions.router, prefix="/quiz", tags=["Submissions"])
app.include_router(leaderboard.router, prefix="/leaderboard", tags=["Leaderboard"])
app.include_router(analytics.router, prefix="/admin", tags=["Analytics"])
app.include_router(realtime.router, tags=["Realtime"])

@app.on_event("startup")
async def start_notifications():
    notification_manager.start_background_tasks()

@app.on_event("shutdown")
async def stop_notifications():
    await notification_manager.stop_background_tasks()

@app.get("/health")
async def health():
    return {"status": "ok", "notifications": notification_manager.get_health_status()}

# Root endpoint
@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.app_name}", "version": app.version}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
