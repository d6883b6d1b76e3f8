"""Health check endpoint."""

from http.server import BaseHTTPRequestHandler
import json

from src.utils.errors import ConfigurationError
from src.utils.settings import EngineSettings


def health_status() -> dict:
    """Which listing sources are configured; an unreadable environment counts as degraded."""
    try:
        settings = EngineSettings.from_env()
    except ConfigurationError as e:
        return {
            "status": "degraded",
            "service": "listings-engine",
            "sources": {"primary": False, "secondary": False},
            "error": str(e),
        }
    return {
        "status": "ok" if settings.primary_configured else "degraded",
        "service": "listings-engine",
        "sources": {
            "primary": settings.primary_configured,
            "secondary": settings.secondary_configured,
        },
    }


class handler(BaseHTTPRequestHandler):
    """Vercel serverless entry point."""

    def do_GET(self):
        body = json.dumps(health_status()).encode('utf-8')
        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Content-Length', str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    do_POST = do_GET
