# ABOUTME: Jinja2 rendering for the new-post notification email and unsubscribe page.
# ABOUTME: Builds absolute post and unsubscribe links from the configured base URL.

from dataclasses import dataclass
from urllib.parse import quote, urlencode

from jinja2 import Environment, FileSystemLoader, select_autoescape

from continued_education.config import Settings, get_settings
from continued_education.models import PostRef, Subscriber, UnsubscribeOutcome

NOTIFICATION_HTML_TEMPLATE = "post_notification.html"
NOTIFICATION_TXT_TEMPLATE = "post_notification.txt"
UNSUBSCRIBE_PAGE_TEMPLATE = "unsubscribe_page.html"


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


class EmailRenderer:
    """Renders notification emails and unsubscribe pages."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._jinja_env: Environment | None = None

    @property
    def jinja_env(self) -> Environment:
        """Lazy-initialized Jinja2 environment."""
        if self._jinja_env is None:
            self._jinja_env = Environment(
                loader=FileSystemLoader(str(self.settings.templates_dir)),
                autoescape=select_autoescape(["html"]),
            )
        return self._jinja_env

    def post_url(self, post: PostRef) -> str:
        return f"{self.settings.base_url}/post/{quote(post.id, safe='')}"

    def unsubscribe_url(self, subscriber: Subscriber) -> str:
        """Recipient-scoped unsubscribe link; falls back to the email form without a token."""
        if subscriber.unsubscribe_token:
            query = urlencode({"token": subscriber.unsubscribe_token})
        else:
            query = urlencode({"email": subscriber.email})
        return f"{self.settings.base_url}/unsubscribe?{query}"

    def render_post_notification(self, post: PostRef, unsubscribe_url: str) -> RenderedEmail:
        """Render subject, HTML and text bodies for one post.

        Args:
            post: The published post.
            unsubscribe_url: Recipient link, or the provider placeholder for broadcasts.
        """
        context = {
            "site_name": self.settings.site_name,
            "title": post.title,
            "excerpt": post.excerpt,
            "post_url": self.post_url(post),
            "unsubscribe_url": unsubscribe_url,
        }
        html = self.jinja_env.get_template(NOTIFICATION_HTML_TEMPLATE).render(**context)
        text = self.jinja_env.get_template(NOTIFICATION_TXT_TEMPLATE).render(**context)
        return RenderedEmail(subject=f"New Post: {post.title}", html=html, text=text)

    def render_unsubscribe_page(self, outcome: UnsubscribeOutcome) -> str:
        """Self-contained confirmation page with a link back to the gallery."""
        return self.jinja_env.get_template(UNSUBSCRIBE_PAGE_TEMPLATE).render(
            site_name=self.settings.site_name,
            home_url=f"{self.settings.base_url}/",
            title=outcome.title,
            message=outcome.message,
            success=outcome.succeeded,
            state=outcome.state.value,
        )
