"""
Plain-text email message encoding for the Gmail API.
"""

import base64


def build_raw_message(to: str, subject: str, body: str) -> str:
    """
    Build an RFC 822 message and encode it as unpadded base64url.

    The Gmail API expects this form in the ``raw`` field of drafts and sends.
    """
    lines = [
        f"To: {to}",
        f"Subject: {subject}",
        "Content-Type: text/plain; charset=utf-8",
        "",
        body,
    ]
    message = "\r\n".join(lines)
    encoded = base64.urlsafe_b64encode(message.encode("utf-8")).decode("ascii")
    return encoded.rstrip("=")
