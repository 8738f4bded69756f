"""Launch the street alignment FastAPI server."""

import os

import uvicorn

from street_alignment.config import load_settings
from street_alignment.logging_config import configure_logging
from street_alignment.server import CONFIG_ENV


def main():
    settings = load_settings(os.environ.get(CONFIG_ENV))
    configure_logging(settings.log.level, settings.log.json_format)
    uvicorn.run("street_alignment.server:app", host="0.0.0.0", port=8000, reload=True)


if __name__ == "__main__":
    main()
