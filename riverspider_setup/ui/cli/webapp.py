"""
CLI commands for the Google Apps Script Web App URL.

Thin wrappers over ``riverspider_setup.core.services.bootstrap.execution.webapp_url``.
The interactive flow is shared with ``install``.
"""

from __future__ import annotations

import logging
import sys

import click

from riverspider_setup.core.context import SetupContext
from riverspider_setup.core.errors import SetupCancelled, SetupError
from riverspider_setup.core.services.bootstrap.execution.webapp_url import (
    CANCEL_ANSWERS,
    WEBAPP_URL_PATTERN,
    is_valid_webapp_url,
    normalize_webapp_url,
    save_webapp_url,
)
from riverspider_setup.ui.cli.common import abort, locate_existing_target, make_context

logger = logging.getLogger(__name__)

GOOGLE_DRIVE_FOLDER_URL = (
    "https://drive.google.com/drive/folders/"
    "0BxsMACqxAFNwR1pCb2pPeE5Wb1E?resourcekey=0-fb_u058vHLwLSyiSaBKPoQ"
)
GOOGLE_SHEETS_DOC_NAME = "'Copy of assemblerStudent'"


def show_instructions(open_browser: bool = True) -> None:
    """Manual deployment steps; this part cannot be automated."""
    click.echo()
    click.secho("Manual setup of Google App Script:", bold=True)
    click.echo(f"""
👉 Make a copy of:

   shared/processor/{GOOGLE_SHEETS_DOC_NAME}
   {GOOGLE_DRIVE_FOLDER_URL}

   File > Make a Copy
   Save it to: My Drive

   Click: 'Make a Copy'

🔧 In your copy:
   Extensions > Apps Script
   Deploy > New Deployment

   Description:    River Spider Script
   Execute as:     Me
   Access:         Anyone

   Click: 'Deploy'

✅ Authorize and allow access

🔗 Copy the 'Web App URL'
""")
    if open_browser:
        click.launch(GOOGLE_DRIVE_FOLDER_URL)


def read_webapp_url(ctx: SetupContext) -> str:
    """Prompt until a valid URL is entered and saved.

    Raises:
        SetupCancelled: The user typed ``q``.
    """
    while True:
        raw = click.prompt("📥 Paste the Web App URL (or 'q' to cancel)", default="", show_default=False)
        if raw.strip() in CANCEL_ANSWERS:
            raise SetupCancelled("URL entry cancelled by user.", log_file=ctx.log_file)
        url = normalize_webapp_url(raw)
        if is_valid_webapp_url(url):
            path = save_webapp_url(ctx, url)
            click.echo(f"\n📝 Web App URL saved to: {path}\n")
            return url
        ctx.warn("⛓️‍💥 Invalid URL.")
        click.echo("It must match: https://script.google.com/macros/s/{ID}/exec\n")


def prompt_webapp_url(ctx: SetupContext, *, open_browser: bool = True) -> str | None:
    """Offer the instructions, then collect the URL.  None when skipped."""
    while True:
        answer = click.prompt(
            "\n❓ Would you like to view Google Apps Script setup instructions? [Y/n]",
            default="",
            show_default=False,
        ).strip()
        if answer == "" or answer[:1] in ("Y", "y"):
            show_instructions(open_browser=open_browser)
            return read_webapp_url(ctx)
        if answer[:1] in ("N", "n"):
            click.echo("\n⏭️  Setup instructions skipped.\n")
            return None
        ctx.warn("⁉️ Please answer [Y]es or [N]o.")


# ── Commands ────────────────────────────────────────────────────


@click.group()
def webapp() -> None:
    """Web App URL — store the deployed Apps Script URL."""


@webapp.command("set")
@click.argument("url", required=False)
@click.option("--no-browser", is_flag=True, help="Don't open the Drive folder.")
@click.pass_context
def webapp_set(ctx: click.Context, url: str | None, no_browser: bool) -> None:
    """Validate and save URL (prompts when omitted)."""
    sctx = make_context(ctx)
    try:
        locate_existing_target(sctx)
        if url is None:
            prompt_webapp_url(sctx, open_browser=not no_browser)
            return
        cleaned = normalize_webapp_url(url)
        if not is_valid_webapp_url(cleaned):
            click.secho(f"❌ Invalid URL. It must match: {WEBAPP_URL_PATTERN.pattern}", fg="red")
            sys.exit(1)
        path = save_webapp_url(sctx, cleaned)
        click.echo(f"📝 Web App URL saved to: {path}")
    except SetupError as e:
        abort(ctx, e)
