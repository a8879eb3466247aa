from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class Settings(BaseSettings):
    """
    Application settings.
    """
    # API Config
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "FormPulse"

    # Tracking windows and cadences (milliseconds)
    MOTION_WINDOW_MS: float = 3000
    BREATHING_WINDOW_MS: float = 10000
    BREATHING_INTERVAL_MS: float = 3000
    PREDICTION_INTERVAL_MS: float = 5000

    # Keypoints must score above this to be used
    MIN_KEYPOINT_SCORE: float = 0.3
    MAX_REP_HISTORY: int = 10

    # Session store
    MAX_SESSIONS: int = 100

    # Coaching voice passed through to the speech layer
    DEFAULT_VOICE_ID: str = "21m00Tcm4TlvDq8ikWAM"

    # Logging
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

# Create global settings object
settings = Settings()
