"""
Configuration de l'application via pydantic-settings.

La configuration est chargee depuis les variables d'environnement avec le prefixe
STREAMVAULT_, et peut optionnellement etre fournie via un fichier .env.

La cle TMDB est aussi lue depuis TMDB_API_KEY (nom utilise historiquement par
les scripts). Elle n'est requise que par les travaux qui interrogent TMDB.
"""

from pathlib import Path
from typing import Optional, Union

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Fichier .env a la racine du projet (parent de streamvault/)
_PROJECT_ROOT = Path(__file__).parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Parametres de l'application avec support des variables d'environnement.

    Tous les parametres peuvent etre surcharges via des variables d'environnement
    avec le prefixe STREAMVAULT_.
    Exemple : STREAMVAULT_LOG_LEVEL=DEBUG

    Les chemins sont automatiquement etendus (~ -> repertoire home).
    """

    model_config = SettingsConfigDict(
        env_prefix="STREAMVAULT_",
        env_file=_ENV_FILE if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Magasin d'enregistrements
    data_file: Path = Field(default=Path("data/streamvault-data.json"))

    # TMDB
    tmdb_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("STREAMVAULT_TMDB_API_KEY", "TMDB_API_KEY"),
    )
    tmdb_language: str = Field(default="en-US")
    request_timeout: float = Field(default=30.0, gt=0)
    retry_attempts: int = Field(default=3, ge=1)
    retry_backoff_seconds: float = Field(default=1.0, ge=0)
    cache_dir: Path = Field(default=Path(".cache/tmdb"))

    # Delais de courtoisie (secondes)
    request_delay_seconds: float = Field(default=0.25, ge=0)
    episode_delay_seconds: float = Field(default=0.1, ge=0)

    # Logging (fichier + stderr, rotation 10MB, 5 fichiers de retention)
    log_level: str = Field(default="INFO")
    log_file: Path = Field(default=Path("logs/streamvault.log"))
    log_rotation_size: str = Field(default="10 MB")
    log_retention_count: int = Field(default=5)

    @field_validator("data_file", "cache_dir", "log_file", mode="before")
    @classmethod
    def expand_path(cls, v: Union[str, Path]) -> Path:
        """Etend ~ vers le repertoire home dans les chemins."""
        return Path(v).expanduser()

    @property
    def tmdb_enabled(self) -> bool:
        """Verifie si l'API TMDB est configuree."""
        return bool(self.tmdb_api_key)
