from __future__ import annotations

import signal
import sys

from .activation import ActivationHandler, detect_terminal
from .config import load_settings
from .dispatcher import QueryDispatcher
from .errors import RunnerError
from .logging_utils import setup_logger
from .provider_factory import create_registry
from .server import RequestServer


def main() -> int:
    """Load config, build the catalog once, then serve requests until killed."""
    logger = setup_logger("runner")

    try:
        logger.info("Reading config")
        settings = load_settings()
        logger.setLevel(settings.log_level.upper())

        registry = create_registry(settings)
        registry.setup_all()

        terminal = detect_terminal(settings.terminal)
        logger.info(f"Terminal set to '{terminal}'")

        server = RequestServer(
            dispatcher=QueryDispatcher(registry, timeout=settings.provider_timeout),
            activation=ActivationHandler(registry, terminal=terminal),
            socket_path=settings.resolved_socket_path(),
        )
        server.bind()
    except (RunnerError, OSError, ValueError) as e:
        logger.critical(f"Startup failed: {e}")
        return 1

    def _sigterm_handler(signum, frame):
        server.shutdown()
    signal.signal(signal.SIGTERM, _sigterm_handler)

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.shutdown()
        logger.info("Stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
