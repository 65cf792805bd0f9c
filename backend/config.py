# backend/config.py
import os
from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))

BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:8000")

# Fixed pipeline constants, not read from the environment
SCREENSHOTS_DIR = "./screenshots"
BLOCKLIST_URLS = [
    "https://easylist.to/easylist/easylist.txt",
    "https://easylist.to/easylist/easyprivacy.txt",
]
TIMEOUT_MS = 30000
SETTLE_DELAY_MS = 1000
