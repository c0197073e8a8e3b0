"""Blog: a pre-built front-end served with streaming SSR.

The ``dist/`` directory holds what the front-end build would write:
the server bundle, the client manifest and the client assets.

Run it::

    python examples/blog/app.py            # production, port 8080
    WARBLE_ENV=development python examples/blog/app.py

or through the CLI::

    warble run examples/blog --production
"""

import os
from pathlib import Path

from warble import AppConfig, create_app
from warble.server.runner import run

ROOT = Path(__file__).parent

# Production unless told otherwise; the example ships a finished build
config = AppConfig.from_env(
    root=ROOT,
    is_production=os.environ.get("WARBLE_ENV", "production") == "production",
)

app = create_app(config)

if __name__ == "__main__":
    import logging

    logging.basicConfig(level=config.log_level.upper())
    run(app)
