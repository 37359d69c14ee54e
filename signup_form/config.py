"""Signup form — configuration loaded from the environment."""

import os

from dotenv import load_dotenv

load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))

AVAILABILITY_SERVICE_URL = os.getenv("AVAILABILITY_SERVICE_URL", "http://127.0.0.1:8080")
AVAILABILITY_TIMEOUT = float(os.getenv("AVAILABILITY_TIMEOUT", "5.0"))

# Quiet period before a username edit is checked remotely
USERNAME_DEBOUNCE_SECONDS = float(os.getenv("USERNAME_DEBOUNCE_SECONDS", "0.8"))

AVAILABILITY_DB_PATH = os.getenv("AVAILABILITY_DB_PATH", os.path.join(os.path.dirname(__file__), "users.db"))
AVAILABILITY_SERVICE_PORT = int(os.getenv("AVAILABILITY_SERVICE_PORT", "8080"))
