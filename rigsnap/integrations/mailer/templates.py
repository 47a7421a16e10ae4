"""
HTML templates for provider-facing emails.
"""

from __future__ import annotations

from html import escape
from string import Template
from typing import Any

_NEW_REQUEST_TEMPLATE = Template("""\
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>New Service Request</title>
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; margin: 0; padding: 20px; background-color: #f5f5f5; }
        .container { max-width: 600px; margin: 0 auto; background: white; padding: 40px; border-radius: 8px; box-shadow: 0 2px 10px rgba(0,0,0,0.1); }
        .header { text-align: center; margin-bottom: 30px; }
        .logo { font-size: 28px; font-weight: bold; color: #4CAF50; margin-bottom: 10px; }
        .title { font-size: 24px; color: #333; margin-bottom: 20px; }
        .content { color: #555; margin-bottom: 30px; }
        .request-details { background-color: #f9f9f9; padding: 20px; border-radius: 5px; margin: 20px 0; }
        .footer { text-align: center; margin-top: 40px; padding-top: 20px; border-top: 1px solid #eee; color: #999; font-size: 14px; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <div class="logo">$brand</div>
            <h1 class="title">New Service Request!</h1>
        </div>
        <div class="content">
            <p>Hello,</p>
            <p>You have a new service request from <strong>$requester</strong>. Here are the details:</p>
            <div class="request-details">
                <h3>Request Details:</h3>
                <p><strong>Service:</strong> $service</p>
                <p><strong>Description:</strong> $description</p>
                <p><strong>Urgency:</strong> $urgency</p>
                <p><strong>Budget:</strong> $budget</p>
                $location_row
            </div>
            <p>Please respond as soon as possible to discuss the details and provide your quote.</p>
        </div>
        <div class="footer">
            <p>This email was sent by $brand</p>
            <p>You received this because you are registered as a service provider in our system.</p>
        </div>
    </div>
</body>
</html>
""")


def _text(value: Any, default: str) -> str:
    if value is None or value == "":
        return escape(default)
    return escape(str(value))


def render_new_request_email(
    *,
    requester_name: str | None,
    service_type: str | None,
    description: str | None,
    urgency: str | None,
    budget: Any,
    location: Any,
    brand: str = "RigSnap",
) -> tuple[str, str]:
    """Render the subject and HTML body announcing a new service request.

    All request fields are HTML-escaped.
    """
    subject = f"New Service Request - {service_type or 'Service Needed'}"

    budget_text = f"${escape(str(budget))}" if budget not in (None, "") else "Not specified"
    location_row = (
        f"<p><strong>Location:</strong> {escape(str(location))}</p>" if location else ""
    )

    html = _NEW_REQUEST_TEMPLATE.substitute(
        brand=escape(brand),
        requester=_text(requester_name, "A trucker"),
        service=_text(service_type, "General Service"),
        description=_text(description, "No description provided"),
        urgency=_text(urgency, "Normal"),
        budget=budget_text,
        location_row=location_row,
    )
    return subject, html
