import os
from dotenv import load_dotenv

load_dotenv()

# --- API Keys (comma-separated for rotation) ---
ANTHROPIC_API_KEYS = [k.strip() for k in os.getenv("ANTHROPIC_API_KEYS", "").split(",") if k.strip()]
GROQ_API_KEYS = [k.strip() for k in os.getenv("GROQ_API_KEYS", "").split(",") if k.strip()]
OPENROUTER_API_KEYS = [k.strip() for k in os.getenv("OPENROUTER_API_KEYS", "").split(",") if k.strip()]

# --- Auth backend (Supabase issues HS256 JWTs for signed-in users) ---
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET", "change-this-secret-key")
JWT_ALGORITHM = "HS256"
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")

# --- Database ---
# Default to local SQLite, but prefer environment variable (Supabase Postgres in production)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/weekplan.db")

# Fix for common SQLAlchemy issues with postgres:// vs postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# --- Scheduling ---
DAY_START = os.getenv("DAY_START", "09:00")
WORKDAY_CUTOFF = os.getenv("WORKDAY_CUTOFF", "17:00")  # after this, today is no longer schedulable
DEFAULT_WORK_HOURS = int(os.getenv("DEFAULT_WORK_HOURS", "6"))
MIN_WORK_HOURS = 4
MAX_WORK_HOURS = 8
DEFAULT_TASK_MINUTES = int(os.getenv("DEFAULT_TASK_MINUTES", "60"))

# --- Server ---
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
