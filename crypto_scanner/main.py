"""Crypto Scanner - Entry Point.

Captures the top coins as a baseline once a day, alerts once per coin when it
falls through the drop threshold, and posts a daily summary.
"""

import logging
import logging.handlers
import os
import signal
import sys

from .config import settings
from .scanner import CryptoScanner
from .server import start_http_server

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Global scanner instance for signal handling
scanner: CryptoScanner = None


def configure_logging():
    """Log to stdout, plus daily-rotated files when LOG_DIR is set."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.log_dir:
        os.makedirs(settings.log_dir, exist_ok=True)
        file_handler = logging.handlers.TimedRotatingFileHandler(
            os.path.join(settings.log_dir, "crypto_scanner.log"),
            when="midnight",
            backupCount=settings.log_retention_days,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )
    # httpx logs every request at INFO, which includes the bot token in the URL.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def signal_handler(signum, frame):
    """Handle shutdown signals gracefully."""
    logger.info(f"Received signal {signum}, shutting down...")
    if scanner:
        scanner.stop()
    sys.exit(0)


def main():
    """Main entry point."""
    global scanner

    configure_logging()

    logger.info("=" * 60)
    logger.info("CRYPTO SCANNER")
    logger.info("=" * 60)

    # Log configuration
    logger.info(f"Timezone: {settings.timezone}")
    logger.info(f"Baseline time: {settings.baseline_time:%H:%M}")
    logger.info(f"Summary time: {settings.summary_time:%H:%M}")
    logger.info(f"Check interval: {settings.check_interval_minutes}min")
    logger.info(f"Drop threshold: {settings.drop_threshold_pct}%")
    logger.info(f"Basket size: top {settings.basket_size}")
    logger.info(f"State backend: {settings.state_backend}")
    logger.info(f"Telegram enabled: {settings.telegram_enabled}")
    logger.info(f"Admin configured: {bool(settings.admin_id)}")
    if not settings.cmc_api_key:
        logger.warning("CMC_API_KEY is not set; market data requests will be rejected")

    # Setup signal handlers
    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    try:
        scanner = CryptoScanner()
        start_http_server(scanner)
        scanner.start()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        if scanner:
            scanner.stop()


if __name__ == "__main__":
    main()
