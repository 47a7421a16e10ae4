"""
Email integration
=================

Public re-exports for the email API client and templates.
"""

from .emailService import EmailResult, send_email
from .templates import render_new_request_email

__all__ = [
    "EmailResult",
    "send_email",
    "render_new_request_email",
]
