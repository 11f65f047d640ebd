"""Entry point: run the backend under uvicorn."""

import uvicorn
from api.app import create_app
from src.config import AppConfig
from src.utils.logging_config import LoggingConfig


def main() -> None:
    """Configure logging and serve until SIGINT/SIGTERM.

    uvicorn turns the signal into a lifespan shutdown, which releases the
    WhatsApp client before the process exits.
    """
    LoggingConfig.setup_logging()
    config = AppConfig.from_env()
    app = create_app(config)
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    main()
