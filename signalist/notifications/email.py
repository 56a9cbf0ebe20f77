# signalist/notifications/email.py
"""SMTP email: welcome message and the daily news summary."""

import asyncio
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Sequence

from signalist.core.config import settings
from signalist.logger import get_logger
from signalist.news.articles import FormattedArticle
from signalist.utils.formatting import format_time_ago

log = get_logger(__name__)

DEFAULT_WELCOME_INTRO = (
    "Thanks for joining Signalist. You now have the tools to track markets and make smarter moves."
)

WELCOME_TEMPLATE = """
<html>
    <body>
        <h2>Welcome aboard {name}</h2>
        <p>{intro}</p>
        <p>Here is what you can do right now:</p>
        <ul>
            <li>Build your watchlist and keep an eye on the stocks you care about.</li>
            <li>Get a market news summary in your inbox every day.</li>
        </ul>
        <p><a href="{dashboard_url}" style="background-color: #FDD458; color: #000; padding: 12px 20px; text-decoration: none; border-radius: 4px;">Go to Dashboard</a></p>
    </body>
</html>
"""

NEWS_SUMMARY_TEMPLATE = """
<html>
    <body>
        <h2>Market News Summary Today</h2>
        <p>{date}</p>
        {news_content}
        <p style="color: #888;">You are receiving this because you subscribed to Signalist news updates.</p>
    </body>
</html>
"""

ARTICLE_TEMPLATE = """
        <div style="margin-bottom: 20px;">
            <h3><a href="{url}">{headline}</a></h3>
            <p style="color: #888;">{source} &middot; {time_ago}{related}</p>
            <p>{summary}</p>
        </div>
"""


def smtp_configured() -> bool:
    return all([settings.SMTP_HOST, settings.SMTP_USER, settings.SMTP_PASSWORD])


def render_news_content(articles: Sequence[FormattedArticle]) -> str:
    """HTML block for a list of formatted articles."""
    parts = []
    for a in articles:
        parts.append(ARTICLE_TEMPLATE.format(
            url=escape(a.url, quote=True),
            headline=escape(a.headline),
            source=escape(a.source),
            time_ago=format_time_ago(a.datetime),
            related=f" &middot; {escape(a.related)}" if a.related else "",
            summary=escape(a.summary),
        ))
    return "".join(parts)


class EmailService:
    @staticmethod
    def _deliver(to: str, subject: str, text: str, html: str, from_name: str) -> bool:
        """Send one message; returns False when skipped or failed."""
        if not smtp_configured():
            log.warning(f"SMTP not configured - email '{subject}' for {to} not sent")
            return False

        try:
            msg = MIMEMultipart("alternative")
            msg["From"] = f'"{from_name}" <{settings.SMTP_USER}>'
            msg["To"] = to
            msg["Subject"] = subject
            msg.attach(MIMEText(text, "plain"))
            msg.attach(MIMEText(html, "html"))

            with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.REQUEST_TIMEOUT_SECONDS) as server:
                server.starttls()
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
                server.send_message(msg)
        except Exception as e:
            log.error(f"Failed to send email '{subject}' to {to}: {e}")
            return False

        log.info(f"Email '{subject}' sent to {to}")
        return True

    @staticmethod
    def send_welcome_email(email: str, name: str, intro: str = DEFAULT_WELCOME_INTRO) -> bool:
        html = WELCOME_TEMPLATE.format(
            name=escape(name),
            intro=escape(intro or DEFAULT_WELCOME_INTRO),
            dashboard_url=escape(settings.FRONTEND_URL, quote=True),
        )
        return EmailService._deliver(
            email,
            "Welcome to Signalist - your stock market toolkit is ready!",
            "Thanks for joining Signalist",
            html,
            settings.EMAIL_FROM_NAME,
        )

    @staticmethod
    def send_news_summary_email(email: str, date: str, articles: Sequence[FormattedArticle]) -> bool:
        html = NEWS_SUMMARY_TEMPLATE.format(date=escape(date), news_content=render_news_content(articles))
        return EmailService._deliver(
            email,
            f"Market News Summary Today - {date}",
            "Today's market news summary from Signalist",
            html,
            f"{settings.EMAIL_FROM_NAME} News",
        )


async def send_welcome_email(email: str, name: str, intro: str = DEFAULT_WELCOME_INTRO) -> bool:
    return await asyncio.to_thread(EmailService.send_welcome_email, email, name, intro)


async def send_news_summary_email(email: str, date: str, articles: Sequence[FormattedArticle]) -> bool:
    return await asyncio.to_thread(EmailService.send_news_summary_email, email, date, articles)
