"""Noyau d'accès aux données de la clinique (patients, médecins, remisiones)."""

__version__ = "1.0.0"
