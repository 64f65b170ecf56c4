import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Config:
    # Storage
    STORE_BACKEND = os.getenv("STORE_BACKEND", "memory").lower()
    MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017/campus_events")
    DB_NAME = os.getenv("DB_NAME", "campus_events")
    STORAGE_NAMESPACE = os.getenv("STORAGE_NAMESPACE", "campus_events")

    # Behaviour
    SEED_SAMPLE_DATA = _flag("SEED_SAMPLE_DATA", "true")
    ENFORCE_REGISTRATION_LIMITS = _flag("ENFORCE_REGISTRATION_LIMITS", "false")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Config()
