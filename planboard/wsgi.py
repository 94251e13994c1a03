"""WSGI entrypoint."""

from planboard import create_app

app = create_app()
