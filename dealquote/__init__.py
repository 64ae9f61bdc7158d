"""Flask application factory."""
from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException
from dealquote.database import init_db, get_session
import os


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Sentry error tracking in production only
    if os.getenv('SENTRY_DSN') and (app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            profiles_sample_rate=0.1,
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Redis cache for per-deal quote listings
    from dealquote.services.cache_service import init_cache
    init_cache(app)

    # Prometheus metrics instrumentation
    from dealquote.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Production: Enable ProxyFix for HTTPS behind Nginx reverse proxy
    if app.config.get('ENV') == 'production' or app.config.get('FLASK_ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_for=1,
            x_proto=1,
            x_host=1,
            x_port=1,
            x_prefix=0
        )

    # Initialize database
    init_db(app)

    # In-process custom field definition cache, keyed by entity type
    from dealquote.services.definition_cache import DefinitionCache
    from dealquote.services.custom_field_service import make_definition_loader
    app.extensions['definition_cache'] = DefinitionCache(
        make_definition_loader(get_session),
        ttl_seconds=app.config.get('CUSTOM_FIELDS_CACHE_TTL', 300),
    )

    # Error Handlers
    from dealquote.exceptions import QuoteServiceError

    @app.errorhandler(QuoteServiceError)
    def handle_quote_service_error(error):
        """Render application exceptions as JSON."""
        if error.status_code >= 500:
            app.logger.error(f"QuoteServiceError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"QuoteServiceError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({'status': 'error', 'message': error.name}), error.code

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.exception(f"Unhandled Exception on {request.method} {request.path}: {error}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from dealquote.blueprints.price_quotes import price_quotes_bp
    from dealquote.blueprints.custom_fields import custom_fields_bp
    from dealquote.blueprints.metrics import metrics_bp

    app.register_blueprint(price_quotes_bp)
    app.register_blueprint(custom_fields_bp)
    app.register_blueprint(metrics_bp)

    # Register CLI commands
    from dealquote.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(
        f"Pricing policy: warning band={app.config.get('ESCALATION_WARNING_BAND_PERCENTAGE')} "
        f"remainder={app.config.get('INSTALLMENT_REMAINDER_POLICY')}"
    )

    return app
