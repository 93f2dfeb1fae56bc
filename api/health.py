"""Health check endpoint."""

from http.server import BaseHTTPRequestHandler

from api._common import send_json
from clawban.utils.settings import Settings


class handler(BaseHTTPRequestHandler):
    """Health check handler for Vercel serverless function."""

    def do_GET(self):
        """Handle GET request."""
        send_json(self, 200, {"status": "ok", "service": Settings.SERVICE_NAME})

    def do_POST(self):
        """Handle POST request (same as GET for health check)."""
        self.do_GET()
