"""Root landing page with links to the API documentation and health endpoints."""

from html import escape


def render_root_page(app_name: str, app_version: str) -> str:
    """Return HTML for the root landing page."""
    name = escape(app_name)
    version = escape(app_version)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{name}</title>
    <style>
        body {{
            font-family: system-ui, sans-serif;
            margin: 0;
            padding: 2rem 1rem;
            background: #0b0d10;
            color: #e0e0e0;
        }}
        .wrap {{ max-width: 560px; margin: 0 auto; }}
        h1 {{ font-size: 1.6rem; margin-bottom: 0.25rem; }}
        .version {{ color: #8a8f98; font-size: 0.9rem; }}
        ul {{ padding-left: 1.2rem; line-height: 1.9; }}
        a {{ color: #7cb7ff; }}
    </style>
</head>
<body>
    <div class="wrap">
        <h1>{name}</h1>
        <div class="version">Thesis Support System API &middot; v{version}</div>
        <ul>
            <li><a href="/docs">Interactive API docs</a></li>
            <li><a href="/redoc">ReDoc</a></li>
            <li><a href="/api/v1/health">Health</a> &middot; <a href="/api/v1/health/ready">Readiness</a></li>
            <li><a href="/api/v1/public/status">Public status</a></li>
        </ul>
    </div>
</body>
</html>
"""
