"""
Contrôle de qualité des traductions.

Fonctionnalités:
- Nettoyage des sorties brutes du modèle
- Détection d'écho (sortie identique à la source)
- Détection de lettres latines dans les langues à écriture non latine
- Exclusions pour les échos légitimes (noms propres, sigles)
"""

from .validator import QualityGate, QualityReport

__all__ = ["QualityGate", "QualityReport"]
