import os
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / ".env")

DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./school_marks.db").strip()

DEFAULT_JWT_SECRET = "dev-secret-key-change-me"
JWT_SECRET = os.environ.get("JWT_SECRET", "").strip() or DEFAULT_JWT_SECRET
JWT_ALGORITHM = "HS256"
JWT_EXPIRE_MINUTES = int(os.environ.get("JWT_EXPIRE_MINUTES", str(8 * 60)))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"

PASSWORD_MIN_LENGTH = 6
