import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from api.routers import tracking, coaching
from core.config import settings
from utils.logger import setup_logging

# Setup logging
logger = setup_logging()
logger.info("Starting FormPulse API")

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Real-time form, rep, breathing and fatigue analysis from pose keypoints",
    version="0.1.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify your frontend domain
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(tracking.router, prefix=settings.API_V1_STR, tags=["Tracking"])
app.include_router(coaching.router, prefix=settings.API_V1_STR, tags=["Coaching"])

@app.get("/")
def read_root():
    return {"message": "Welcome to FormPulse API", "version": "0.1.0"}

@app.get("/health")
def health_check():
    return {"status": "healthy"}

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
