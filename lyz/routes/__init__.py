from lyz.routes.auth import bp as auth_bp
from lyz.routes.plans import bp as plans_bp
from lyz.routes.admin import bp as admin_bp


def register_blueprints(app):
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(plans_bp, url_prefix="/api/plans")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
