from flask import Flask, request, jsonify
from flask_migrate import Migrate
from flask_cors import CORS
from sqlalchemy import text
from lyz.config import Config
from lyz.models import db
from lyz.s3client import ObjectStorage
from lyz.llm import CompletionClient
import time
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

migrate = Migrate()


def create_app(config=Config, storage=None, llm=None):
    """
    Build the Flask app.

    `storage` (object store) and `llm` (completion client) default to the
    S3 and OpenAI implementations configured in `config`; tests pass fakes.
    """
    app = Flask(__name__)
    app.config.from_object(config)
    CORS(app)

    db.init_app(app)
    migrate.init_app(app, db)

    app.extensions["storage"] = storage or ObjectStorage(
        app.config["S3_BUCKET"],
        endpoint_url=app.config["S3_ENDPOINT_URL"],
        region=app.config["AWS_REGION"],
    )
    app.extensions["llm"] = llm or CompletionClient(api_key=app.config["OPENAI_API_KEY"])

    from lyz.routes import register_blueprints
    register_blueprints(app)

    from lyz.seed import register_commands
    register_commands(app)

    @app.before_request
    def log_api_request():
        if request.path.startswith('/api/'):
            logger.info(f"🌐 API Route: {request.method} {request.path}")

    # ========== HEALTH CHECK ==========
    @app.route("/health", methods=["GET"])
    @app.route("/api/health", methods=["GET"])
    def health():
        """Health check endpoint for the load balancer"""
        try:
            db.session.execute(text("SELECT 1"))
            db_status = "healthy"
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            db_status = "unhealthy"

        health_status = {
            "status": "healthy" if db_status == "healthy" else "degraded",
            "database": db_status,
            "timestamp": time.time()
        }

        status_code = 200 if health_status["status"] == "healthy" else 503
        return jsonify(health_status), status_code

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"message": "Endpoint not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({
            "message": "Method not allowed",
            "error": str(error.description)
        }), 405

    @app.errorhandler(413)
    def payload_too_large(error):
        return jsonify({"message": "Uploaded file is too large"}), 413

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {error}")
        return jsonify({"message": "Internal server error"}), 500

    return app
