import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

ENVIRONMENT = os.getenv("ENVIRONMENT", "production").lower()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./appointpro.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_EXPIRE_DAYS = int(os.getenv("JWT_EXPIRE_DAYS", "7"))

# Frontend base URL for payment redirects
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:8080")

# Twilio Configuration (WhatsApp template first, SMS fallback)
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER")
TWILIO_WHATSAPP_TEMPLATE_SID = os.getenv("TWILIO_WHATSAPP_TEMPLATE_SID")
TWILIO_API_BASE = os.getenv("TWILIO_API_BASE", "https://api.twilio.com/2010-04-01")

# OTP Configuration
OTP_STORE_BACKEND = os.getenv("OTP_STORE_BACKEND", "memory").lower()  # memory or redis
OTP_TTL_SECONDS = int(os.getenv("OTP_TTL_SECONDS", "300"))
OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", "3"))
OTP_SWEEP_INTERVAL_SECONDS = int(os.getenv("OTP_SWEEP_INTERVAL_SECONDS", "300"))
# Test mode stores a fixed code and skips delivery - development only
OTP_TEST_MODE = os.getenv("OTP_TEST_MODE", "false").lower() == "true"
OTP_TEST_CODE = os.getenv("OTP_TEST_CODE", "123456")
OTP_TEST_PHONES = [p.strip() for p in os.getenv("OTP_TEST_PHONES", "").split(",") if p.strip()]

# Redis Configuration (shared OTP store)
REDIS_URL = os.getenv("REDIS_URL")
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD")
REDIS_DB = int(os.getenv("REDIS_DB", "0"))
REDIS_SSL = os.getenv("REDIS_SSL", "false").lower() == "true"

# Ziina Payments Configuration
ZIINA_API_KEY = os.getenv("ZIINA_API_KEY")
ZIINA_API_BASE = os.getenv("ZIINA_API_BASE", "https://api-v2.ziina.com/api")
ZIINA_TEST_MODE = os.getenv("ZIINA_TEST_MODE", "true").lower() == "true"
ZIINA_WEBHOOK_SECRET = os.getenv("ZIINA_WEBHOOK_SECRET")
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "AED")

# Appointment lifecycle: permissive unless explicitly enabled
STRICT_STATUS_TRANSITIONS = os.getenv("STRICT_STATUS_TRANSITIONS", "false").lower() == "true"

# CORS
ALLOWED_ORIGINS = [
    o.strip()
    for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:8080,http://localhost:5173").split(",")
    if o.strip()
]
