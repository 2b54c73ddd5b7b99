"""
External service handles for the notification dispatcher.

Clients are built once at process start by ``create_services()`` and passed
explicitly into the tick, so tests can inject fakes without patching globals.
"""

import os
from dataclasses import dataclass
from typing import Any

import firebase_admin
from dotenv import load_dotenv
from firebase_admin import credentials
from supabase import Client, create_client

load_dotenv()

FIREBASE_APP_NAME = "ep-notification-dispatcher"


@dataclass(frozen=True)
class Services:
    """Long-lived clients shared by every phase of a tick."""

    supabase: Client
    firebase_app: Any = None


def get_supabase_client() -> Client:
    """Create a Supabase client from the service-role credentials."""
    url: str | None = os.getenv("SUPABASE_URL")
    key: str | None = os.getenv("SUPABASE_SERVICE_KEY")

    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")

    return create_client(url, key)


def get_firebase_app() -> firebase_admin.App:
    """
    Initialize the Firebase Admin app used for Cloud Messaging.

    Uses the service account file in FIREBASE_CREDENTIALS_PATH when set,
    otherwise Google application default credentials.
    """
    credentials_path = os.getenv("FIREBASE_CREDENTIALS_PATH")
    if credentials_path:
        credential = credentials.Certificate(credentials_path)
    else:
        credential = credentials.ApplicationDefault()

    return firebase_admin.initialize_app(credential, name=FIREBASE_APP_NAME)


def create_services() -> Services:
    """Build the service handle once per process."""
    return Services(supabase=get_supabase_client(), firebase_app=get_firebase_app())
