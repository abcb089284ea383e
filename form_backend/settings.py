"""
Backend settings, read once from the environment at import time.
"""
import os
from pathlib import Path

HOST = os.getenv("FORM_CANVAS_HOST", "127.0.0.1")
PORT = int(os.getenv("FORM_CANVAS_PORT", "8765"))

# Default directory for GET /api/forms
FORMS_DIR = Path(os.getenv("FORM_CANVAS_FORMS_DIR", os.path.expanduser("~/forms")))

LOG_LEVEL = os.getenv("FORM_CANVAS_LOG_LEVEL", "INFO").upper()

# Local dev servers of the browser view
CORS_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
]
