"""
Email Templates

HTML and plain text bodies for the advisor alerts digest.
"""

from datetime import date
from html import escape
from typing import Sequence

from app.alerts.models import AdvisorAlert, AlertSeverity
from app.data.dates import format_short_date


def get_severity_color(severity: AlertSeverity) -> str:
    """Get color for severity level."""
    return {
        AlertSeverity.CRITICAL: "#DC2626",   # Red
        AlertSeverity.WARNING: "#F59E0B",    # Amber
        AlertSeverity.INFO: "#3B82F6",       # Blue
    }.get(severity, "#6B7280")


# =============================================================================
# BASE TEMPLATE
# =============================================================================

BASE_HTML_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{subject}</title>
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
            line-height: 1.6;
            color: #1F2937;
            margin: 0;
            padding: 0;
            background-color: #F3F4F6;
        }}
        .container {{
            max-width: 600px;
            margin: 0 auto;
            padding: 20px;
        }}
        .card {{
            background: white;
            border-radius: 8px;
            padding: 24px;
            box-shadow: 0 1px 3px rgba(0, 0, 0, 0.1);
        }}
        .button {{
            display: inline-block;
            padding: 12px 24px;
            background-color: #2563EB;
            color: white;
            text-decoration: none;
            border-radius: 6px;
            font-weight: 500;
            margin-top: 16px;
        }}
    </style>
</head>
<body>
    <div class="container">
        <div class="card">
            {content}
        </div>
    </div>
</body>
</html>
"""


# =============================================================================
# DIGEST
# =============================================================================

def build_digest_subject(day: date) -> str:
    return f"Alertas pendientes - {format_short_date(day)}"


def build_advisor_digest_email(
    advisor_name: str,
    alerts: Sequence[AdvisorAlert],
    day: date,
    objectives_url: str,
) -> tuple[str, str, str]:
    """
    Build the daily advisor alerts digest.

    One bullet per alert summary, in the order given.

    Returns: (subject, html_body, plain_text_body)
    """
    subject = build_digest_subject(day)
    greeting = f"Hola {advisor_name}," if advisor_name else "Hola,"

    items = "".join(
        f'<li style="border-left: 4px solid {get_severity_color(alert.severity)}; '
        f'padding-left: 8px; margin-bottom: 6px;">{escape(alert.email_summary)}</li>'
        for alert in alerts
    )

    content = f"""
            <p>{escape(greeting)}</p>
            <p>Estas son tus alertas pendientes:</p>
            <ul>{items}</ul>
            <a href="{escape(objectives_url, quote=True)}" class="button">Ver alertas en Objetivos</a>
    """

    html_body = BASE_HTML_TEMPLATE.format(subject=escape(subject), content=content)

    lines = "\n".join(f"- {alert.email_summary}" for alert in alerts)
    plain_text = f"""{greeting}

Estas son tus alertas pendientes:

{lines}

Ver alertas en Objetivos: {objectives_url}
"""

    return subject, html_body, plain_text
