from __future__ import annotations

GENERIC_MESSAGE = "**Oops!**\n\nWe encountered an issue. Please try again later."


class SiteError(Exception):
    status = 500
    message_md = GENERIC_MESSAGE


class NotFound(SiteError):
    status = 404
    message_md = "**Not Found**\n\nThe page you are looking for does not exist."


class ValidationFailure(SiteError):
    status = 400
    message_md = "**Bad Request**\n\nThis file type cannot be served here."
