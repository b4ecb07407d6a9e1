import os

from flask import Flask, jsonify, request

from extensions import db, bcrypt, login_manager, migrate, csrf


def create_app(config_class=None):
    base_dir = os.path.dirname(os.path.abspath(__file__))
    project_root = os.path.abspath(os.path.join(base_dir, '..'))
    template_dir = os.path.join(project_root, 'templates')
    static_dir = os.path.join(project_root, 'static')
    app = Flask(
        __name__,
        template_folder=template_dir,
        static_folder=static_dir,
        static_url_path='/static'
    )

    # Honor reverse proxy headers (scheme/host/port)
    from werkzeug.middleware.proxy_fix import ProxyFix
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=1)

    # Load configuration (prefers local SQLite when no DATABASE_URL)
    if config_class is None:
        from config import Config as config_class
    app.config.from_object(config_class)
    app.config.setdefault('WTF_CSRF_SECRET_KEY', app.config['SECRET_KEY'])

    db.init_app(app)
    bcrypt.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    # Flask-Login: session cookie or bearer token, JSON 401 otherwise
    from models import User
    from services.auth_tokens import bearer_token, read_token

    @login_manager.user_loader
    def load_user(user_id):
        try:
            return db.session.get(User, int(user_id))
        except (TypeError, ValueError):
            return None

    @login_manager.request_loader
    def load_user_from_request(req):
        uid = read_token(bearer_token(req.headers.get('Authorization')))
        if uid is None:
            return None
        user = db.session.get(User, uid)
        if user is None or not user.is_active:
            return None
        return user

    @login_manager.unauthorized_handler
    def _unauthorized():
        return jsonify({'success': False, 'error': 'unauthorized', 'message': 'Authentication required'}), 401

    # Blueprints
    from routes.auth import bp as auth_bp
    from routes.reports import bp as reports_bp
    app.register_blueprint(auth_bp)
    app.register_blueprint(reports_bp)
    # Token clients post JSON without a CSRF form token
    csrf.exempt(auth_bp)
    csrf.exempt(reports_bp)

    @app.route('/health')
    def health():
        return jsonify({'ok': True})

    @app.errorhandler(404)
    def _not_found(e):
        if request.path.startswith('/reports/'):
            return jsonify({'success': False, 'error': 'not_found', 'message': 'Unknown report type'}), 404
        return jsonify({'success': False, 'error': 'not_found', 'message': 'Not found'}), 404

    # One pipeline per app; it holds the memoized report templates
    from modules.reports.emitter import emitter_from_config
    from modules.reports.pipeline import ReportPipeline
    from modules.reports.renderer import renderer_from_config
    app.extensions['report_pipeline'] = ReportPipeline(
        renderer_from_config(app.config),
        emitter_from_config(app.config),
    )

    # Ensure tables exist on startup (useful for local SQLite runs)
    with app.app_context():
        db.create_all()

    from logging_setup import setup_logging
    setup_logging(app)

    return app
