#!/usr/bin/env python3
"""Génère app/core/database_config.py au moment du build.

Le backend de données (PostgreSQL direct ou Supabase) est figé dans le code
packagé: l'application ne relit jamais ce choix depuis l'environnement.

Usage:
    # PostgreSQL (par défaut)
    DB_BACKEND=postgres python scripts/generate_db_config.py

    # Supabase
    DB_BACKEND=supabase python scripts/generate_db_config.py

    # Option explicite (prioritaire sur l'environnement)
    python scripts/generate_db_config.py --backend supabase

    # Afficher le fichier sans l'écrire
    python scripts/generate_db_config.py --dry-run
"""

import argparse
import logging
import os
import sys
from datetime import UTC, datetime
from pathlib import Path

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)
logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).parent.parent / "app" / "core" / "database_config.py"

BACKENDS = ("postgres", "supabase")

TEMPLATE = '''"""
Configuration de la base de données figée au moment du build.

Fichier généré par scripts/generate_db_config.py - ne pas modifier à la main.
Généré le: {generated_at}
"""

from typing import Final

USE_POSTGRES: Final[bool] = {use_postgres}
'''


def resolve_backend(explicit: str | None, environ: dict[str, str]) -> str:
    """
    Détermine le backend à figer.

    Priorité: option --backend, puis DB_BACKEND, puis l'ancienne variable
    USE_POSTGRES ("true"/"false"), sinon postgres.

    Raises:
        ValueError: Valeur de backend inconnue
    """
    if explicit:
        value = explicit
    elif environ.get("DB_BACKEND"):
        value = environ["DB_BACKEND"]
    elif "USE_POSTGRES" in environ:
        value = "postgres" if environ["USE_POSTGRES"].strip().lower() == "true" else "supabase"
    else:
        value = "postgres"

    value = value.strip().lower()
    if value not in BACKENDS:
        raise ValueError(f"DB_BACKEND invalide: {value!r} (attendu: {', '.join(BACKENDS)})")
    return value


def render(backend: str, generated_at: datetime | None = None) -> str:
    return TEMPLATE.format(
        generated_at=(generated_at or datetime.now(UTC)).isoformat(timespec="seconds"),
        use_postgres=backend == "postgres",
    )


def main(backend: str | None, dry_run: bool, output: Path = CONFIG_PATH) -> int:
    try:
        selected = resolve_backend(backend, dict(os.environ))
    except ValueError as e:
        logger.error(str(e))
        return 1

    content = render(selected)
    if dry_run:
        print(content)
        return 0

    output.write_text(content, encoding="utf-8")
    logger.info(f"Backend figé au build: {selected} -> {output}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Fige le backend de données dans le code packagé")
    parser.add_argument("--backend", choices=BACKENDS, help="Backend à utiliser (sinon DB_BACKEND)")
    parser.add_argument("--dry-run", action="store_true", help="Affiche le fichier sans l'écrire")
    args = parser.parse_args()

    sys.exit(main(args.backend, args.dry_run))
