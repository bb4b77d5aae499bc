"""Secure Attendance Engine - Application Factory."""
import logging
import os
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.middleware.proxy_fix import ProxyFix

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)

from secure_attendance.services.proxy_log_service import ProxyLogWriter  # noqa: E402

proxy_log_writer = ProxyLogWriter()


def create_app(config_name: str = None, overrides: dict = None) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)

    # Load configuration
    from secure_attendance.config import get_config
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    if app.config.get('PROXY_FIX_X_FOR'):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=app.config['PROXY_FIX_X_FOR'])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)
    proxy_log_writer.init_app(app)

    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]))

    setup_logging(app)
    register_blueprints(app)
    register_error_handlers(app)
    setup_database(app)
    register_commands(app)

    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'Secure Attendance Engine',
            'version': '1.0.0'
        })

    return app


def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from flask_swagger_ui import get_swaggerui_blueprint
    from secure_attendance.api.sessions import sessions_bp
    from secure_attendance.api.attendance import attendance_bp
    from secure_attendance.api.proxy_attempts import proxy_bp
    from secure_attendance.utils.swagger import generate_swagger_spec, SWAGGER_URL, API_URL

    app.register_blueprint(sessions_bp, url_prefix='/api/sessions')
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')
    app.register_blueprint(proxy_bp, url_prefix='/api/proxy-attempts')

    @app.route(API_URL)
    def swagger_spec():
        """Serve Swagger/OpenAPI specification."""
        return jsonify(generate_swagger_spec())

    swaggerui_bp = get_swaggerui_blueprint(
        SWAGGER_URL,
        API_URL,
        config={'app_name': "Secure Attendance Engine API"}
    )
    app.register_blueprint(swaggerui_bp, url_prefix=SWAGGER_URL)


def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from werkzeug.exceptions import HTTPException
    from secure_attendance.utils.errors import ErrorCode
    from secure_attendance.utils.helpers import handle_error, error_response

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return handle_error(e, e.code)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        app.logger.exception('Unhandled error: %s', error)
        return error_response('Internal server error', 500, code=ErrorCode.SERVER_ERROR)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return error_response('Token has expired', 401, code=ErrorCode.INVALID_TOKEN)

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return error_response('Invalid token', 401, code=ErrorCode.INVALID_TOKEN)

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return error_response('Authorization token required', 401, code=ErrorCode.NO_AUTH)


def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
        app.logger.info('Secure Attendance Engine startup')


def setup_database(app: Flask) -> None:
    """Import models so metadata is complete; create tables when configured."""
    with app.app_context():
        from secure_attendance import models  # noqa: F401

        if app.config.get('AUTO_CREATE_TABLES'):
            db.create_all()


def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    def init_db(drop):
        """Initialize the database."""
        if drop:
            db.drop_all()
            click.echo('Dropped all tables.')

        db.create_all()
        click.echo('Created all tables.')

    @app.cli.command('seed-demo')
    def seed_demo():
        """Seed database with a demo course, classroom and active session."""
        from secure_attendance.services.seed_service import SeedService

        summary = SeedService.seed_all()
        click.echo('Database seeded successfully!')
        for key, value in summary.items():
            click.echo(f'  {key}: {value}')

    @app.cli.command('proxy-report')
    @click.option('--range', 'date_range', default='week',
                  type=click.Choice(['day', 'week', 'month', 'all']))
    @click.option('--type', 'attempt_type', default=None, help='Filter by attempt type')
    def proxy_report(date_range, attempt_type):
        """Print suspicious proxy-attendance patterns."""
        from secure_attendance.services.pattern_service import ProxyPatternAnalyzer, ProxyAttemptFilter

        analysis = ProxyPatternAnalyzer().analyze(
            ProxyAttemptFilter(date_range=date_range, attempt_type=attempt_type)
        )
        stats = analysis.stats
        click.echo(f"Attempts: {stats['total_attempts']}  students: {stats['unique_students']}  "
                   f"IPs: {stats['unique_ips']}  devices: {stats['unique_devices']}")
        if not analysis.patterns:
            click.echo('No suspicious patterns detected.')
        for pattern in analysis.patterns:
            click.echo(f'[{pattern.severity.upper()}] {pattern.type}: {pattern.description}')
