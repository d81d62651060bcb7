"""Client settings read from the environment."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_ENDPOINT


class Settings(BaseSettings):
    """Fallback credentials and endpoint, all from ``FOXY_API_*`` variables."""

    model_config = SettingsConfigDict(env_prefix="FOXY_API_")

    client_id: str = ""
    client_secret: str = ""
    refresh_token: str = ""
    url: str = DEFAULT_ENDPOINT
