from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "Sealed Arena"
    debug: bool = False

    scryfall_api_url: str = "https://api.scryfall.com"
    scryfall_user_agent: str = "SealedArena/1.0"
    scryfall_timeout: float = 30.0

    # Scryfall asks for 50-100ms between requests
    scryfall_rate_limit_delay: float = 0.1

    default_session_id: str = "main"


settings = Settings()


# =============================================================================
# POOL ASSEMBLY
# =============================================================================

# Packs handed to each participant at the lobby -> deckbuilding transition
DEFAULT_PACK_COUNT = 6

# Chance that the rare slot is upgraded to a mythic (when the set has mythics)
MYTHIC_CHANCE = 1 / 8

# Sets offered when the catalog's set list is unavailable
FALLBACK_SETS: tuple[tuple[str, str], ...] = (
    ("otj", "Outlaws of Thunder Junction"),
    ("mh3", "Modern Horizons 3"),
    ("woe", "Wilds of Eldraine"),
    ("mom", "March of the Machine"),
    ("one", "Phyrexia: All Will Be One"),
)


# =============================================================================
# GAME TABLE
# =============================================================================

STARTING_LIFE = 20
OPENING_HAND_SIZE = 7
MAX_PARTICIPANTS = 2
