import logging


def configure_logging(default_level: int = logging.INFO) -> None:
    """Configure root logger with the package's default format."""
    logging.basicConfig(
        level=default_level,
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )
