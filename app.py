#!/usr/bin/env python3
"""
Bones Admin: Application Entry Point
Creates the Flask app and registers the dashboard Blueprint.
"""

import os
import logging

from flask import Flask

from bones.core.logging_config import setup_logging


def create_app(client=None, store=None, config=None):
    """Application factory.

    client / store override the ApiClient and LocalStore the routes use;
    tests pass fakes here.
    """
    setup_logging()
    app = Flask(__name__)
    app.secret_key = os.environ.get("SECRET_KEY", "bones-admin")
    app.config["BONES_CLIENT"] = client
    app.config["BONES_STORE"] = store
    if config:
        app.config.update(config)

    from bones.core import paths
    paths.ensure_dirs(paths.DATA_DIR, paths.OUTPUT_DIR)
    checks = paths.validate_paths()
    for err in checks["errors"]:
        logging.getLogger("bones").error("Path check: %s", err)

    from bones.core.settings import validate_settings
    validate_settings()

    from bones.api.dashboard import bp
    app.register_blueprint(bp)
    return app


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    create_app().run(host="0.0.0.0", port=port)
