"""
Flask Application Factory - Declarative RPC service.

Every registered API is served as POST /{service}/{version}/{id}. With
DEBUG_ON the Swagger document is generated once at startup and served at
/swaggerJSON and /swaggerYAML, with an index page at /.
"""

import logging
from typing import Iterable, Optional

from flask import Flask
from flask_cors import CORS

from config import Config, ServiceConf

logger = logging.getLogger('app')


def create_app(api_sets: Optional[Iterable] = None, conf: Optional[ServiceConf] = None):
    """
    Build the application.

    Args:
        api_sets: APISets to serve (default: api.contracts.schemas.API_SETS)
        conf: Service configuration (default: ServiceConf.from_env())

    Raises:
        RegistrationError: For duplicate API ids (fatal at startup)
        SchemaDefinitionError: For a shape that cannot be described
    """
    if api_sets is None:
        from api.contracts.schemas import API_SETS
        api_sets = API_SETS
    if conf is None:
        conf = ServiceConf.from_env()

    app = Flask(__name__)
    app.config.from_object(Config)
    # Responses keep the shape's field order
    app.json.sort_keys = False

    # Preflight for every API path; '*' instead of echoing Origin
    CORS(app,
         resources={f"{conf.base_path}/*": {"origins": "*"}},
         methods=["POST", "OPTIONS"],
         allow_headers=["Content-Type", "X-Request-ID"],
         expose_headers=["X-Request-ID"],
         supports_credentials=False,
         send_wildcard=True)

    # === API CONTRACT MIDDLEWARE ===
    from api.middleware import (
        setup_error_handlers,
        setup_request_id_middleware,
        setup_request_logging_middleware,
    )
    setup_request_id_middleware(app)
    setup_request_logging_middleware(app, conf.base_path)
    setup_error_handlers(app)

    # Duplicate ids raise here and abort startup
    from api.contracts import Dispatcher, register_api_sets
    registry = register_api_sets(api_sets)

    app.service_conf = conf
    app.registry = registry
    app.dispatcher = Dispatcher(registry)

    from routes.rpc import rpc_bp
    app.register_blueprint(rpc_bp, url_prefix=conf.base_path)

    if conf.debug_on:
        from api.docs import generate_docs
        from routes.docs import docs_bp
        app.swagger_docs = generate_docs(registry, conf)
        app.register_blueprint(docs_bp)
        logger.info("Docs served at %s", conf.public_url("/"))

    logger.info(
        "Serving %d API(s) under %s", len(registry), conf.base_path
    )
    return app


def run_app():
    """Main entry point for local development - starts Flask's dev server."""
    conf = ServiceConf.from_env()
    logging.basicConfig(level=Config.LOG_LEVEL)
    app = create_app(conf=conf)
    app.run(debug=Config.DEBUG, host=conf.listen_host, port=conf.listen_port)


if __name__ == "__main__":
    run_app()
