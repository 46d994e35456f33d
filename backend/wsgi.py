# Overview: WSGI entry point; also the FLASK_APP target for the CLI commands.

from homestore import create_app

app = create_app()
