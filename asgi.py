"""
asgi.py -- Application assembly for Yellow.

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app

app = create_app()
