"""
Configuration for the Degree Planner Backend

Loads settings from the backend .env file and initializes the Firebase
Admin SDK used by the transcript and plan stores.
"""

import os
from pathlib import Path

import firebase_admin
from firebase_admin import credentials, firestore
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

# Firebase configuration from environment variables
FIREBASE_CONFIG = {
    "apiKey": os.getenv("FIREBASE_API_KEY"),
    "authDomain": os.getenv("FIREBASE_AUTH_DOMAIN"),
    "projectId": os.getenv("FIREBASE_PROJECT_ID"),
    "storageBucket": os.getenv("FIREBASE_STORAGE_BUCKET"),
    "appId": os.getenv("FIREBASE_APP_ID")
}

# Service account key path
SERVICE_ACCOUNT_PATH = os.getenv("FIREBASE_SERVICE_ACCOUNT_PATH", "serviceAccountKey.json")

# Transcript parsing service
PARSER_API_URL = os.getenv("PARSER_API_URL", "http://localhost:4000/transcript/parse")
PARSER_TIMEOUT_SECONDS = int(os.getenv("PARSER_TIMEOUT_SECONDS", "60"))

# Static reference data (plans.json, courses.json, equivalences.json, lessons.json)
CATALOG_DIR = Path(os.getenv("CATALOG_DIR", str(Path(__file__).parent.parent / "data")))

# Suffix letter marking an alternate-delivery (English-taught) section, e.g. "MAT 103E"
EQUIVALENCE_SUFFIX = os.getenv("EQUIVALENCE_SUFFIX", "E")

# Redis read-through cache for stored transcripts and plans
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB = int(os.getenv("REDIS_DB", "0"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", None)

# TTL settings (in seconds)
TRANSCRIPT_CACHE_TTL = int(os.getenv("TRANSCRIPT_CACHE_TTL", "300"))
PLAN_CACHE_TTL = int(os.getenv("PLAN_CACHE_TTL", "600"))

# Global Firestore client
_db = None


def initialize_firebase():
    """
    Initialize Firebase Admin SDK.

    Uses a service account key when one can be found next to the backend,
    otherwise falls back to application default credentials.
    """
    global _db

    if _db is not None:
        return _db

    backend_dir = Path(__file__).parent.parent
    possible_paths = [
        backend_dir / SERVICE_ACCOUNT_PATH,
        Path("backend") / SERVICE_ACCOUNT_PATH,
        Path(SERVICE_ACCOUNT_PATH)
    ]

    if not firebase_admin._apps:
        for path in possible_paths:
            if path.exists():
                cred = credentials.Certificate(str(path))
                firebase_admin.initialize_app(cred)
                break
        else:
            firebase_admin.initialize_app(options={
                'projectId': FIREBASE_CONFIG['projectId']
            })

    _db = firestore.client()
    return _db


def get_firestore_client():
    """Get the Firestore client instance."""
    global _db
    if _db is None:
        _db = initialize_firebase()
    return _db
