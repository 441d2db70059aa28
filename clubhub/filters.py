def format_money(value, currency="ARS"):
    """Format an amount in minor units, e.g. 150050 -> 'ARS 1,500.50'."""
    if value is None:
        return f"{currency} 0.00"
    sign = "-" if value < 0 else ""
    return f"{sign}{currency} {abs(value) / 100:,.2f}"


def format_percent(value):
    if value is None:
        return "0.0%"
    return f"{value:.1f}%"


def register_filters(env):
    """Register custom Jinja2 filters on an app or a bare Environment."""
    jinja_env = getattr(env, "jinja_env", env)
    jinja_env.filters['format_money'] = format_money
    jinja_env.filters['format_percent'] = format_percent
