import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./collevento.db")

SECRET_KEY = os.getenv("JWT_SECRET", "supersecret")
ALGORITHM = "HS256"
ACCESS_TOKEN_HOURS = int(os.getenv("ACCESS_TOKEN_HOURS", "24"))
OTP_TTL_MINUTES = int(os.getenv("OTP_TTL_MINUTES", "5"))

# Overbooking and placeholder pricing are opt-in through these switches.
ENFORCE_CAPACITY = os.getenv("ENFORCE_CAPACITY", "true").lower() == "true"
REVENUE_MODE = os.getenv("REVENUE_MODE", "event_price")  # event_price, flat
FLAT_TICKET_PRICE = int(os.getenv("FLAT_TICKET_PRICE", "100"))

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "20"))
CHAT_MAX_PENDING = int(os.getenv("CHAT_MAX_PENDING", "5"))

UPLOAD_PLACEHOLDER_URL = os.getenv("UPLOAD_PLACEHOLDER_URL", "https://picsum.photos/seed/{seed}/1200/600")
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
