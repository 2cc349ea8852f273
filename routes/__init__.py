from .lead_routes import lead_bp
from .admission_routes import admission_bp
from .accounting_routes import accounting_bp


def init_routes(app):
    app.register_blueprint(lead_bp)  # url_prefix="/leads" set on the blueprint
    app.register_blueprint(admission_bp)
    app.register_blueprint(accounting_bp)
