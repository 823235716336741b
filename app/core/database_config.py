"""
Configuration de la base de données figée au moment du build.

Fichier généré par scripts/generate_db_config.py - ne pas modifier à la main.
Généré le: 2026-10-19T08:00:00+00:00
"""

from typing import Final

USE_POSTGRES: Final[bool] = True
