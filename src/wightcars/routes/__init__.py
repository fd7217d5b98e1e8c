from .auth import bp as auth_bp
from .cars import bp as cars_bp
from .messages import bp as messages_bp
from .users import bp as users_bp
from .admin import bp as admin_bp


def register_blueprints(app):
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(cars_bp, url_prefix="/api/cars")
    app.register_blueprint(messages_bp, url_prefix="/api/messages")
    app.register_blueprint(users_bp, url_prefix="/api")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
