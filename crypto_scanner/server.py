"""Minimal HTTP listener: health endpoint and Telegram webhook."""

import hmac
import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Optional

from .config import settings

logger = logging.getLogger(__name__)


def make_handler(scanner, webhook_secret: Optional[str] = None):
    """Build a request handler bound to a running CryptoScanner."""
    secret = webhook_secret if webhook_secret is not None else settings.telegram_webhook_secret

    class _Handler(BaseHTTPRequestHandler):
        def do_GET(self):
            if self.path == "/":
                self._respond(200, b"Crypto Scanner is running", "text/plain")
            elif self.path in ("/health", "/healthz"):
                body = json.dumps(scanner.health()).encode("utf-8")
                self._respond(200, body, "application/json")
            else:
                self._respond(404, b"", "text/plain")

        def do_POST(self):
            if self.path != "/webhook":
                self._respond(404, b"", "text/plain")
                return

            if secret:
                token = self.headers.get("X-Telegram-Bot-Api-Secret-Token", "")
                if not hmac.compare_digest(token, secret):
                    logger.warning("Webhook call with bad secret token rejected")
                    self._respond(403, b"", "text/plain")
                    return

            try:
                length = int(self.headers.get("Content-Length", "0"))
                update = json.loads(self.rfile.read(length) or b"{}")
            except ValueError as e:
                logger.warning(f"Ignoring unparseable webhook body: {e}")
                self._respond(400, b"", "text/plain")
                return

            try:
                scanner.handle_update(update)
            except Exception as e:
                logger.error(f"Error handling webhook update: {e}", exc_info=True)
            # Always 200 so Telegram does not redeliver; the reply goes out through sendMessage.
            self._respond(200, b"", "text/plain")

        def _respond(self, status: int, body: bytes, content_type: str):
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            if body:
                self.wfile.write(body)

        def log_message(self, *args):
            pass  # suppress HTTP access logs

    return _Handler


def start_http_server(scanner, port: Optional[int] = None) -> HTTPServer:
    """Start the listener on a daemon thread."""
    port = port if port is not None else settings.health_port
    server = HTTPServer(("", port), make_handler(scanner))
    thread = threading.Thread(target=server.serve_forever, name="http", daemon=True)
    thread.start()
    logger.info(f"HTTP server listening on :{port} (/health, /webhook)")
    return server
