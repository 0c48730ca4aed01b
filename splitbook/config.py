import os
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()


def _split_origins(value: str):
    return [origin.strip() for origin in value.split(",") if origin.strip()]


class Config:
    # Comma separated list of frontends allowed to call /api/*
    CORS_ORIGINS = _split_origins(
        os.environ.get("CORS_ORIGINS", "http://localhost:5173,http://localhost:8080")
    )

    # Database config (defaults allow local run without crashing)
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", 3306))
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_NAME = os.environ.get("DB_NAME", "splitbook")
    DB_POOL_SIZE = int(os.environ.get("DB_POOL_SIZE", 10))

    # Differences at or below this are treated as zero (0.01 suits 2-decimal currencies)
    SETTLEMENT_TOLERANCE = Decimal(os.environ.get("SETTLEMENT_TOLERANCE", "0.01"))

    # Smallest currency unit; reported figures and recorded settlements are rounded to it
    ROUNDING_QUANTUM = Decimal(os.environ.get("ROUNDING_QUANTUM", "0.01"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

config = Config()
