"""
Flask Application Factory

Creates and configures the Flask application.
"""

from flask import Flask, jsonify
from flask_cors import CORS

from auctionresults.config import get_config
from auctionresults.core.database import get_connection, init_schema
from auctionresults.api.routes import register_routes
from auctionresults.logging_config import setup_logging, get_logger

logger = get_logger(__name__)


def create_app(test_config=None) -> Flask:
    """Create and configure the Flask application.

    Args:
        test_config: Optional test configuration dict.

    Returns:
        Configured Flask application.
    """
    config = get_config()

    # Setup logging
    setup_logging()

    app = Flask(__name__)

    # Apply configuration
    app.config["DEBUG"] = config.api.debug
    app.config["JSON_SORT_KEYS"] = False

    if test_config:
        app.config.update(test_config)

    CORS(app)

    # Read endpoints query the tables before any scrape has run
    with get_connection() as conn:
        init_schema(conn)

    register_routes(app)

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"error": "Method not allowed"}), 405

    logger.info("Flask app created")
    return app


def run_server(host: str = None, port: int = None, debug: bool = None):
    """Run the Flask development server.

    Args:
        host: Host to bind to.
        port: Port to bind to.
        debug: Enable debug mode.
    """
    config = get_config()

    host = host or config.api.host
    port = port or config.api.port
    debug = debug if debug is not None else config.api.debug

    app = create_app()

    logger.info("Starting server on %s:%d", host, port)
    app.run(host=host, port=port, debug=debug)
