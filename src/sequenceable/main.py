"""Application entry point for the sequenceable server."""

from sequenceable.app import App
from sequenceable.config import Config
from sequenceable.logging import setup_logging
from sequenceable.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
