from flask import request


def load_json(schema, partial=False):
    """Validate the JSON body with a marshmallow schema. Raises ValidationError."""
    return schema.load(request.get_json(silent=True) or {}, partial=partial)


def register_blueprints(app):
    from clubhub.routes.auth import auth_bp
    from clubhub.routes.organizations import organizations_bp, org_bp
    from clubhub.routes.athletes import athletes_bp
    from clubhub.routes.me import me_bp
    from clubhub.routes.public import public_bp
    from clubhub.routes.coaches import coaches_bp
    from clubhub.routes.locations import locations_bp
    from clubhub.routes.groups import groups_bp
    from clubhub.routes.sessions import sessions_bp
    from clubhub.routes.payments import payments_bp
    from clubhub.routes.payroll import payroll_bp
    from clubhub.routes.expenses import expenses_bp
    from clubhub.routes.events import events_bp
    from clubhub.routes.stock import stock_bp
    from clubhub.routes.cash_register import cash_register_bp
    from clubhub.routes.dashboard import dashboard_bp
    from clubhub.routes.notifications import notifications_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(organizations_bp, url_prefix="/api/organizations")
    app.register_blueprint(org_bp, url_prefix="/api/org")
    app.register_blueprint(athletes_bp, url_prefix="/api/org/athletes")
    app.register_blueprint(me_bp, url_prefix="/api/me")
    app.register_blueprint(public_bp, url_prefix="/api/public")
    app.register_blueprint(coaches_bp, url_prefix="/api/org/coaches")
    app.register_blueprint(locations_bp, url_prefix="/api/org/locations")
    app.register_blueprint(groups_bp, url_prefix="/api/org/groups")
    app.register_blueprint(sessions_bp, url_prefix="/api/org/sessions")
    app.register_blueprint(payments_bp, url_prefix="/api/org/payments")
    app.register_blueprint(payroll_bp, url_prefix="/api/org/payroll")
    app.register_blueprint(expenses_bp, url_prefix="/api/org/expenses")
    app.register_blueprint(events_bp, url_prefix="/api/org/events")
    app.register_blueprint(stock_bp, url_prefix="/api/org/stock")
    app.register_blueprint(cash_register_bp, url_prefix="/api/org/cash-register")
    app.register_blueprint(dashboard_bp, url_prefix="/api/org/dashboard")
    app.register_blueprint(notifications_bp, url_prefix="/api/org/notifications")
