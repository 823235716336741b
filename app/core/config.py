import json
import urllib.parse
from typing import Literal, TypeAlias

from opentelemetry.sdk.resources import Resource
from pydantic import AnyHttpUrl, computed_field, field_validator
from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL

# Type personnalisé pour les listes configurables depuis l'environnement
ConfigurableList: TypeAlias = str | list[str] | list[AnyHttpUrl]

# Graphe de transitions par défaut des remisiones (états en base)
DEFAULT_REFERRAL_TRANSITIONS: dict[str, list[str]] = {
    "Pendiente": ["Aceptada", "Rechazada"],
    "Aceptada": ["Completada"],
    "Rechazada": [],
    "Completada": [],
}


def parse_list_from_env(value: ConfigurableList, field_name: str = "field") -> list[str]:
    """
    Fonction utilitaire pour parser une liste depuis une variable d'environnement.

    Supporte les formats suivants:
    - Liste Python directe: ['val1', 'val2']
    - Format JSON: '["val1", "val2"]'
    - Format virgules: "val1,val2,val3"
    - Chaîne vide: "" → []

    Args:
        value: La valeur à parser (chaîne ou liste)
        field_name: Nom du champ pour les messages d'erreur

    Returns:
        Liste de chaînes parsée

    Raises:
        ValueError: Si le format n'est pas valide
    """
    if isinstance(value, list):
        return value
    elif isinstance(value, str):
        value = value.strip()
        if value.startswith("[") and value.endswith("]"):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                raise ValueError(f"Format JSON invalide pour {field_name}: {value}")
        elif value:
            return [item.strip() for item in value.split(",") if item.strip()]
        else:
            return []
    raise ValueError(f"Valeur invalide pour {field_name}: {value}")


class Settings(BaseSettings):
    try:
        from app import __version__
    except ImportError:
        __version__ = "0.1.0"  # Version par défaut si non trouvée

    PROJECT_NAME: str = "clinica-core-data"
    PROJECT_SLUG: str = "clinica"
    VERSION: str = __version__
    DESCRIPTION: str = "Data access core for the clinic management backend"

    # API Versioning
    API_VERSIONS: list[str] = ["v1"]
    API_LATEST_VERSION: str = "v1"

    # Environnement
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = "development"
    DEBUG: bool = False

    # Clinique propriétaire des enregistrements créés (remisiones, services)
    CLINICA_ALIAS: str | None = None

    # OpenTelemetry
    OTEL_SERVICE_NAME: str = "clinica-core-data"
    OTEL_EXPORTER_OTLP_ENDPOINT: str = "http://localhost:4317"
    OTEL_EXPORTER_OTLP_PROTOCOL: str = "grpc"
    OTEL_EXPORTER_OTLP_INSECURE: bool = True
    OTEL_LOG_LEVEL: str = "info"
    OTEL_LOGS_EXPORTER: Literal["otlp", "console"] = "otlp"
    OTEL_TRACES_EXPORTER: Literal["otlp", "console"] = "otlp"
    OTEL_METRICS_EXPORTER: Literal["otlp", "console"] = "otlp"
    OTEL_PYTHON_LOG_LEVEL: str = "info"
    OTEL_PYTHON_LOGGING_AUTO_INSTRUMENTATION_ENABLED: bool = True
    OTEL_PYTHON_LOG_CORRELATION: bool = True
    OTEL_PYTHON_LOG_FORMAT: str = "%(asctime)s %(levelname)s [%(name)s] [%(filename)s:%(lineno)d] [trace_id=%(otelTraceID)s span_id=%(otelSpanID)s resource.service.name=%(otelServiceName)s trace_sampled=%(otelTraceSampled)s] - %(message)s"

    # CORS
    # Définir dans .env, ex: ALLOWED_ORIGINS='["http://localhost:4200"]'
    ALLOWED_ORIGINS: ConfigurableList = ["http://localhost:4200"]
    TRUSTED_HOSTS: ConfigurableList = ["localhost", "127.0.0.1"]

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: ConfigurableList) -> list[str]:
        """
        Permet de définir ALLOWED_ORIGINS de plusieurs façons:
        - Chaîne séparée par des virgules: "http://localhost:4200,https://app.exemple.com"
        - Format JSON: '["http://localhost:4200","https://app.exemple.com"]'
        - Liste Python directe (si déjà parsée)
        """
        return parse_list_from_env(v, "ALLOWED_ORIGINS")

    @field_validator("TRUSTED_HOSTS", mode="before")
    @classmethod
    def assemble_trusted_hosts(cls, v: ConfigurableList) -> list[str]:
        """Parse TRUSTED_HOSTS depuis une variable d'environnement."""
        return parse_list_from_env(v, "TRUSTED_HOSTS")

    # PostgreSQL (backend relationnel direct)
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "clinica"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_SSL: bool = False
    POSTGRES_POOL_SIZE: int = 10
    POSTGRES_MAX_OVERFLOW: int = 5
    # Timeouts en secondes
    POSTGRES_POOL_TIMEOUT: float = 5.0  # Attente max pour obtenir une connexion du pool
    POSTGRES_CONNECTION_TIMEOUT: float = 5.0
    POSTGRES_QUERY_TIMEOUT: float = 10.0

    # Supabase (backend hébergé)
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_TIMEOUT: float = 10.0

    # Sonde de démarrage de la base (seul endroit avec retry)
    DATABASE_STARTUP_RETRY_ATTEMPTS: int = 5

    # Remisiones
    REFERRAL_TRANSITIONS: dict[str, list[str]] = DEFAULT_REFERRAL_TRANSITIONS
    REFERRAL_MIN_REASON_LENGTH: int = 5

    @computed_field
    @property
    def postgres_dsn(self) -> str:
        """DSN asyncpg assemblé depuis les paramètres POSTGRES_*."""
        url = URL.create(
            drivername="postgresql+asyncpg",
            username=self.POSTGRES_USER or None,
            password=self.POSTGRES_PASSWORD or None,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            database=self.POSTGRES_DB or None,
        )
        return url.render_as_string(hide_password=False)

    # Ressource OpenTelemetry
    @property
    def OTEL_RESOURCE_ATTRIBUTES(self) -> Resource:  # noqa: N802
        """Crée l'objet Resource pour OpenTelemetry avec les attributs du service."""
        return Resource(
            attributes={
                "service.name": self.OTEL_SERVICE_NAME,
                "service.version": self.VERSION,
                "service.environment": self.ENVIRONMENT,
                "service.debug": str(self.DEBUG).lower(),
            }
        )

    @computed_field
    @property
    def api_base_path(self) -> str:
        """Chemin de base de l'API avec la dernière version."""
        return urllib.parse.urljoin("/", f"api/{self.API_LATEST_VERSION}")

    def get_api_prefix(self, version: str | None = None) -> str:
        """
        Get API prefix for a specific version.

        Args:
            version: API version (e.g., "v1", "v2"). Defaults to latest.

        Returns:
            API prefix string (e.g., "/api/v1")
        """
        version = version or self.API_LATEST_VERSION
        return f"/api/{version}"

    class Config:
        case_sensitive = True
        env_file = ".env"
        extra = "ignore"


# Instance unique des paramètres chargée depuis .env
settings = Settings()
