"""Welcome notification sent after a successful login."""

from shoora_mail.lib.config import SmtpConfig
from shoora_mail.models.draft import OutboundDraft

WELCOME_SUBJECT = "Welcome to {site_name}! 🚀"
WELCOME_TEXT = "Welcome to {site_name}! You have successfully logged in."
WELCOME_IMAGE_URL = (
    "https://res.cloudinary.com/dtwumvj5i/image/upload/v1767200085/Mail_Image_iwjmp1.jpg"
)
WELCOME_HTML = """<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{site_name}</title>
    <style>
        body {{ margin: 0; padding: 0; background-color: #f4f4f4; }}
        .email-container {{ width: 100%; margin: 0; padding: 0; }}
        .responsive-image {{
            width: 100%;
            height: auto;
            display: block;
            border-radius: 10px;
        }}
    </style>
</head>
<body>
    <div class="email-container">
        <img src="{image_url}" alt="{site_name}" class="responsive-image">
    </div>
</body>
</html>
"""


def build_welcome_draft(address: str, config: SmtpConfig) -> OutboundDraft:
    """Welcome message from the site account to ``address``."""
    return OutboundDraft(
        from_address=config.site_email,
        from_name=config.site_name,
        to=[address],
        subject=WELCOME_SUBJECT.format(site_name=config.site_name),
        text=WELCOME_TEXT.format(site_name=config.site_name),
        html=WELCOME_HTML.format(site_name=config.site_name, image_url=WELCOME_IMAGE_URL),
    )
