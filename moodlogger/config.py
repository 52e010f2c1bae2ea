# backend configuration
# loads env vars for mongodb, local store, jwt, gemini, google sheets and mood thresholds

import os
from pathlib import Path
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# load .env from project root
load_dotenv(Path(__file__).parent.parent / ".env")


class Settings(BaseSettings):
    # mongodb (remote entry store) — empty uri means local-only persistence
    MONGODB_URI: str = os.getenv("MONGODB_URI", "")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "mood_logger_db")
    ENTRIES_COLLECTION: str = os.getenv("ENTRIES_COLLECTION", "daily_entries")

    # local entry store — one json file acting as a key/value store
    LOCAL_STORE_PATH: str = os.getenv("LOCAL_STORE_PATH", "data/local_store.json")
    LOCAL_STORAGE_KEY: str = os.getenv("LOCAL_STORAGE_KEY", "moodLoggerData")

    # jwt (scope identity comes from the token subject)
    JWT_SECRET: str = os.getenv("JWT_SECRET", "moodlogger-dev-secret-change-in-production")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # gemini (for mood pattern insights)
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    MIN_INSIGHT_DAYS: int = 3

    # google sheets export
    GOOGLE_SHEET_ID: str = os.getenv("GOOGLE_SHEET_ID", "")
    GOOGLE_SHEET_NAME: str = os.getenv("GOOGLE_SHEET_NAME", "Sheet1")
    GOOGLE_SERVICE_ACCOUNT_EMAIL: str = os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL", "")
    GOOGLE_PRIVATE_KEY: str = os.getenv("GOOGLE_PRIVATE_KEY", "")

    # overall mood thresholds, applied to the average theme total
    MOOD_BAD_THRESHOLD: float = -0.75
    MOOD_GOOD_THRESHOLD: float = 0.75

    # cors
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
