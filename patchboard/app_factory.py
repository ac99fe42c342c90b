# patchboard/app_factory.py
from flask import Flask, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_login import LoginManager
from sqlalchemy.exc import OperationalError
from patchboard.init_db import db
from patchboard.errors import ApiError, error_response
from patchboard.logging_config import setup_logging
from patchboard.notifications import BrevoNotifier
from patchboard.realtime import socketio
from patchboard.realtime.registry import SessionRegistry

logger = setup_logging()


def create_app(config_class='patchboard.config.Config'):
    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)
    JWTManager(app)
    CORS(app, origins=app.config['CORS_ORIGINS'], supports_credentials=True)
    # Socket event handlers register themselves on import
    from patchboard.realtime import events  # noqa: F401
    socketio.init_app(
        app,
        cors_allowed_origins=app.config['CORS_ORIGINS'],
        async_mode=app.config.get('SOCKETIO_ASYNC_MODE'),
    )

    from patchboard.authentication.guard import load_user_from_request
    login_manager = LoginManager()
    login_manager.init_app(app)
    login_manager.request_loader(load_user_from_request)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'success': False, 'message': 'Not authorized'}), 401

    app.extensions['patchboard.notifier'] = BrevoNotifier.from_config(app.config)
    app.extensions['patchboard.registry'] = SessionRegistry(socketio)

    # Import and register blueprints
    prefix = app.config['API_PREFIX'].rstrip('/')

    from patchboard.authentication.routes import auth_bp as auth_blueprint
    app.register_blueprint(auth_blueprint, url_prefix=f'{prefix}/auth')

    from patchboard.canvas.routes import canvas_bp as canvas_blueprint
    app.register_blueprint(canvas_blueprint, url_prefix=f'{prefix}/canvas')

    register_error_handlers(app)

    @app.route('/')
    def index():
        return jsonify({'message': 'Welcome to the Patchboard API'})

    with app.app_context():
        try:
            db.create_all()
        except OperationalError as e:
            app.logger.error(f"OperationalError during database initialization: {e}")

    return app


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(error):
        logger.warning(f"Request rejected: {error.message}")
        return error_response(error)

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({'success': False, 'message': 'Route not found'}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({'success': False, 'message': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def handle_server_error(error):
        logger.error(f"Unhandled server error: {error}")
        return jsonify({'success': False, 'message': 'Server error'}), 500
