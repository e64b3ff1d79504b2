# File: markets/firebase.py
"""Lazily initialised Firebase app shared by the identity check and Firestore store."""
from __future__ import annotations

import json
import logging
import os

import firebase_admin
from firebase_admin import credentials

from markets import config

logger = logging.getLogger(__name__)


def _load_credentials():
    source = config.CREDENTIAL_SOURCE
    if not source:
        # Application default credentials (gcloud / metadata server)
        return credentials.ApplicationDefault()
    # Case 1: it's a file path
    if os.path.exists(source):
        logger.info("Loading Firebase credentials from file: %s", source)
        return credentials.Certificate(source)
    # Case 2: it's a raw JSON string
    logger.info("Loading Firebase credentials from raw JSON string")
    return credentials.Certificate(json.loads(source))


def get_app() -> firebase_admin.App:
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass
    options = {"projectId": config.FIREBASE_PROJECT_ID} if config.FIREBASE_PROJECT_ID else None
    app = firebase_admin.initialize_app(_load_credentials(), options)
    logger.info("Firebase initialized with project: %s", app.project_id)
    return app
