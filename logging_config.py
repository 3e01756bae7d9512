import logging
import sys


def setup_logging(level: str = "INFO"):
    """Configure console logging for the dialog service"""

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
            datefmt='%H:%M:%S'
        )
    )

    # Replace whatever handlers uvicorn or an earlier call installed
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    # Silence noisy loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    # Stage timings are only interesting when debugging
    logging.getLogger("propbot.logging.flight_recorder").setLevel(logging.WARNING)

    logging.getLogger("propbot").setLevel(level)


if __name__ == "__main__":
    setup_logging()
