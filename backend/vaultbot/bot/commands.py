"""Command text parsing."""

from dataclasses import dataclass
from typing import Optional

from ..errors import ValidationError

CREDS_USAGE = "/creds <title> <username> <password>"
SHOW_USAGE = "/show <number>"
CONTEXT_USAGE = "/context <title> <content>"
GETCONTEXT_USAGE = "/getcontext <query>"

HELP_TEXT = """Available commands:

🔐 Credentials Management:
/creds <title> <username> <password> - Store new credentials
/show <number> - Show decrypted credentials
/listcreds - List all stored credentials

📝 Context Management:
/context <title> <content> - Store new context
/getcontext <query> - Get AI insights based on stored context
/listcontext [search] - List all stored context entries (optionally filter by title)

ℹ️ Other Commands:
/start - Start the bot
/help - Show this help message"""

WELCOME_TEXT = (
    "👋 Welcome! I can help you store encrypted credentials and manage context.\n\n"
    "Use /help to see available commands."
)


@dataclass(frozen=True)
class Command:
    """A slash command: lowercase name without the slash, and the raw argument text."""
    name: str
    args: str = ""


def parse_command(text: str) -> Optional[Command]:
    """Split "/name@bot args" into a Command. Returns None for plain text."""
    text = text.strip()
    if not text.startswith("/"):
        return None

    parts = text.split(maxsplit=1)
    name = parts[0][1:].split("@", 1)[0].lower()
    if not name:
        return None
    rest = parts[1] if len(parts) > 1 else ""
    return Command(name=name, args=rest.strip())


def parse_creds(args: str) -> tuple[str, str, str]:
    """title and username are single words; the password is everything after them."""
    parts = args.split(maxsplit=2)
    if len(parts) < 3:
        raise ValidationError(CREDS_USAGE)
    title, username, password = parts
    return title, username, password


def parse_show(args: str) -> int:
    parts = args.split()
    try:
        credential_id = int(parts[0])
    except (IndexError, ValueError):
        raise ValidationError(
            SHOW_USAGE, "❌ Please provide a valid credential number."
        ) from None
    if credential_id <= 0:
        raise ValidationError(SHOW_USAGE, "❌ Please provide a valid credential number.")
    return credential_id


def parse_context(args: str) -> tuple[str, str]:
    parts = args.split(maxsplit=1)
    if len(parts) < 2:
        raise ValidationError(CONTEXT_USAGE)
    title, content = parts
    return title, content


def parse_query(args: str) -> str:
    if not args.strip():
        raise ValidationError(GETCONTEXT_USAGE)
    return args.strip()
