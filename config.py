"""
Bot configuration
Static community data plus the runtime settings read from the environment
"""
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv

from logger import log

load_dotenv()

# Embed colors
COLORS = {
    "black": 0x000000,
    "red": 0xFF0000,
    "gold": 0xFFD700,
}

EMOJIS = {
    "anarchist": "Ⓐ",
    "solidarity": "✨",
    "revolution": "⚔️",
    "peace": "🕊️",
    "vote": "📊",
    "assembly": "🏛️",
    "reminder": "🔔",
}

# Reaction symbols seeded on poll anchor messages, by ordinal position
KEYCAP_SYMBOLS = ("1️⃣", "2️⃣", "3️⃣", "4️⃣", "5️⃣", "6️⃣", "7️⃣", "8️⃣", "9️⃣", "🔟")

# Binary vote: affirm, deny, abstain
VOTE_SYMBOLS = ("✅", "❌", "⚪")
VOTE_LABELS = ("Pour", "Contre", "Abstention")

MAX_POLL_OPTIONS = 10

# Polls opened without a duration are forgotten oldest first beyond this many
MAX_UNTIMED_POLLS = 100

# Keyword (lowercase) -> emoji the bot reacts with
REACTION_TRIGGERS = {
    "anarchie": "Ⓐ",
    "solidarité": "✨",
    "solidarite": "✨",
    "entraide": "✨",
    "révolution": "⚔️",
    "revolution": "⚔️",
    "paix": "🕊️",
    "assemblée": "🏛️",
}

WELCOME_IMAGE_URL = "https://wallpapercave.com/wp/3JChxzg.jpg"
WELCOME_FOOTER = "No Gods, No Masters | Power to the People"

MANIFESTO_PRINCIPLES = (
    ("Autogestion", "Les décisions sont prises collectivement, sans hiérarchie."),
    ("Solidarité", "Chacun·e aide selon ses moyens et reçoit selon ses besoins."),
    ("Action Directe", "Nous agissons nous-mêmes plutôt que de déléguer."),
    ("Paix et Liberté", "Aucune domination, aucune violence entre nous."),
)


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        log.error(f"{name} must be an integer, got {value!r}")
        raise ValueError(f"❌ {name} must be an integer")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        log.error(f"{name} must be a number, got {value!r}")
        raise ValueError(f"❌ {name} must be a number")


@dataclass(frozen=True)
class BotConfig:
    """Runtime settings, passed explicitly to every component that needs them"""

    token: str
    client_id: Optional[int] = None
    guild_id: Optional[int] = None
    welcome_channel: Optional[str] = None
    port: int = 3000

    # Liveness (seconds)
    probe_interval: float = 60.0
    http_probe_interval: float = 60.0
    probe_timeout: float = 10.0
    max_retries: int = 10
    retry_delay: float = 30.0
    ready_timeout: float = 60.0

    keycap_symbols: Tuple[str, ...] = field(default=KEYCAP_SYMBOLS)
    vote_symbols: Tuple[str, ...] = field(default=VOTE_SYMBOLS)

    debug: bool = False

    @classmethod
    def from_env(cls) -> "BotConfig":
        """Build the configuration from environment variables (.env is loaded on import)"""
        config = cls(
            token=os.getenv("DISCORD_TOKEN", ""),
            client_id=_env_int("CLIENT_ID", None),
            guild_id=_env_int("GUILD_ID", None),
            welcome_channel=os.getenv("WELCOME_CHANNEL") or None,
            port=_env_int("PORT", 3000),
            probe_interval=_env_float("PROBE_INTERVAL", 60.0),
            http_probe_interval=_env_float("HTTP_PROBE_INTERVAL", 60.0),
            probe_timeout=_env_float("PROBE_TIMEOUT", 10.0),
            max_retries=_env_int("MAX_RETRIES", 10),
            retry_delay=_env_float("RETRY_DELAY", 30.0),
            ready_timeout=_env_float("READY_TIMEOUT", 60.0),
            debug=os.getenv("DEBUG_MODE", "").lower() in ("1", "true", "yes"),
        )
        config.validate()
        return config

    def validate(self):
        """Validate critical configuration"""
        if not self.token:
            log.error("DISCORD_TOKEN is required in .env file")
            raise ValueError("❌ DISCORD_TOKEN is required in .env file")

        for name in ("probe_interval", "http_probe_interval", "probe_timeout", "ready_timeout"):
            if getattr(self, name) <= 0:
                log.error(f"{name} must be positive")
                raise ValueError(f"❌ {name} must be positive")

        if self.retry_delay < 0:
            log.error("retry_delay cannot be negative")
            raise ValueError("❌ retry_delay cannot be negative")

        if self.max_retries < 1:
            log.error("max_retries must be at least 1")
            raise ValueError("❌ max_retries must be at least 1")

        if len(self.keycap_symbols) < MAX_POLL_OPTIONS:
            log.error(f"keycap_symbols needs {MAX_POLL_OPTIONS} entries")
            raise ValueError(f"❌ keycap_symbols needs {MAX_POLL_OPTIONS} entries")

        if len(self.vote_symbols) != len(VOTE_LABELS):
            log.error("vote_symbols needs exactly one symbol per vote label")
            raise ValueError("❌ vote_symbols needs exactly one symbol per vote label")
