import os

from dotenv import load_dotenv

load_dotenv()

SECRET_KEY = os.environ.get("SECRET_KEY", "healthmosaic-dev-secret")

DEFAULT_DB_PATH = "healthmosaic.db" if os.name == "nt" else "/tmp/healthmosaic.db"
DB_PATH = os.environ.get("DB_PATH", DEFAULT_DB_PATH)

GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY")
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-1.5-flash")
CHAT_TEMPERATURE = float(os.environ.get("CHAT_TEMPERATURE", 0.4))
CHAT_HISTORY_WINDOW = int(os.environ.get("CHAT_HISTORY_WINDOW", 20))

HISTORY_LIMIT = int(os.environ.get("HISTORY_LIMIT", 10))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
PORT = int(os.environ.get("PORT", 5000))
