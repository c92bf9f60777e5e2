"""
WSGI / Flask-Migrate entry point.

Usage:
    gunicorn wsgi:app
    flask --app wsgi seed-demo
    flask --app wsgi db migrate -m "description"
    flask --app wsgi db upgrade
"""

from rms import create_app

app = create_app()
