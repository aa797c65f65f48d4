"""
wsgi.py — WSGI entry point.

    gunicorn "studybuddy.wsgi:app"
    flask --app studybuddy.wsgi run
"""

import os

from studybuddy.app import create_app

app = create_app(os.getenv("FLASK_ENV", "development"))
