"""
Application settings and configuration

This file contains all the settings for the sentiment dashboard.
Most settings can be changed by creating a .env file in the project root.
If a setting isn't in .env, it uses the default value shown here.
"""
import os
from dotenv import load_dotenv

# Load environment variables from .env file (if it exists)
load_dotenv()


class Settings:
    """
    Application configuration settings

    Values are read once at import time from the environment.
    """

    # ============================================================
    # Storage Settings
    # ============================================================
    # Where analysis history and exported reports are written
    DATA_DIR = os.getenv("DATA_DIR", "data")  # Main data folder
    HISTORY_FILE = os.getenv("HISTORY_FILE", os.path.join(DATA_DIR, "history", "analysis_history.json"))
    EXPORTS_DIR = os.getenv("EXPORTS_DIR", os.path.join(DATA_DIR, "exports"))  # CLI report output

    # ============================================================
    # Gemini API Settings
    # ============================================================
    # Gemini is used to:
    # - Classify the sentiment of a piece of text
    # - Split long documents into individual reviews
    # - Generate sample reviews for the explorer tab
    # API_KEY is accepted as an alias for older deployments
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", os.getenv("API_KEY", ""))
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.2"))
    LLM_REQUEST_TIMEOUT = float(os.getenv("LLM_REQUEST_TIMEOUT", "60"))  # Seconds per request

    # ============================================================
    # Analysis Settings
    # ============================================================
    # Texts shorter than this (in words) are analyzed as a single review
    # without asking the model to split them first
    EXTRACTION_MIN_WORDS = int(os.getenv("EXTRACTION_MIN_WORDS", "50"))
    MANUAL_MIN_WORDS = int(os.getenv("MANUAL_MIN_WORDS", "3"))  # Minimum words for manual analysis
    SAMPLE_REVIEW_COUNT = int(os.getenv("SAMPLE_REVIEW_COUNT", "5"))  # Reviews per explorer search
    HISTORY_MAX_ITEMS = int(os.getenv("HISTORY_MAX_ITEMS", "20"))  # Manual analyses kept

    # ============================================================
    # Logging Settings
    # ============================================================
    # Options: DEBUG (very detailed), INFO (normal), WARNING (only problems), ERROR (only errors)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE", "logs/app.log")  # Where to save log files

    @staticmethod
    def ensure_directories():
        """
        Create necessary directories if they don't exist
        """
        os.makedirs(Settings.DATA_DIR, exist_ok=True)
        history_dir = os.path.dirname(Settings.HISTORY_FILE)
        if history_dir:
            os.makedirs(history_dir, exist_ok=True)
        os.makedirs(Settings.EXPORTS_DIR, exist_ok=True)
        os.makedirs(os.path.dirname(Settings.LOG_FILE) if os.path.dirname(Settings.LOG_FILE) else "logs", exist_ok=True)


# Global settings instance
settings = Settings()
