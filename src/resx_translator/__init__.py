"""
Traduction par lot des ressources .resx via un serveur Ollama local.

Resx Translator traduit les chaînes d'interface (fichiers .resx clé → texte)
dans une vingtaine de langues avec des modèles génératifs servis par Ollama.

Le processus pour chaque entrée et chaque langue :
1. Valeur figée pour la clé, sinon terme imposé du glossaire
2. Sinon cache des traductions déjà acceptées
3. Sinon : masquage des nombres, prompt, modèle, restauration des nombres
   (chiffres natifs thaï/lao/khmer), nettoyage et contrôle qualité
4. Écriture dans le cache et dans `<nom>.<langue>.resx`

Fonctionnalités principales :
- Glossaire, termes protégés et exclusions d'écho rechargés à chaud
- Cache persistant par langue, réutilisé comme exemples de style
- Signalement des échos et fuites latines dans un journal de relecture
- Un modèle par groupe de langues, déchargé lors des changements
- Logs détaillés de chaque requête au modèle

Organisation du package :
- numeric.py : Masquage et restauration des nombres
- locales.py : Registre des langues et de leurs règles
- store.py : Cache persistant des traductions (JSON)
- stores/ : Glossaire, termes protégés, exclusions, rechargement à chaud
- llm/ : Client Ollama et construction du prompt (Jinja2)
- quality/ : Nettoyage des sorties et détection des défauts
- review.py : Journal de relecture et journal final
- translation/ : Pipeline, fichiers .resx, orchestration
- worker.py : Traitement séquentiel d'un document

Usage minimal :
    >>> from resx_translator import ProjectPaths, OllamaBackend, ResxTranslator
    >>> from resx_translator.config import load_backend_settings
    >>>
    >>> settings = load_backend_settings()
    >>> translator = ResxTranslator(ProjectPaths.resolve(), OllamaBackend(settings), settings)
    >>> translator.translate()

Configuration :
    Variables d'environnement (ou fichier .env) :

        OLLAMA_URL=http://127.0.0.1:11434
        SEA_MODEL=aisingapore/Gemma-SEA-LION-v4-27B-IT:latest
        WESTERN_MODEL=translategemma:27b

Version: 0.1.0
"""

# Orchestration (importée en premier : translator dépend de worker)
from .translation import (
    LOOKUP_CHAIN,
    ResolvedBy,
    ResxTranslator,
    TranslationOutcome,
    TranslationPipeline,
)

from .config import BackendSettings, ProjectPaths
from .exceptions import BackendError, ProjectRootNotFoundError, UnknownLocaleError
from .llm import OllamaBackend, PromptAssembler
from .locales import LOCALES, Locale, get_locale
from .numeric import PlaceholderMap, postprocess, preprocess
from .quality import QualityGate, QualityReport
from .review import ReviewLog, RunSummary
from .store import TranslationCache

# Version du package
__version__ = "0.1.0"

# Exports publics
__all__ = [
    # Version
    "__version__",
    # Orchestration
    "ResxTranslator",
    "TranslationPipeline",
    "TranslationOutcome",
    "ResolvedBy",
    "LOOKUP_CHAIN",
    # Configuration
    "BackendSettings",
    "ProjectPaths",
    # Exceptions
    "BackendError",
    "ProjectRootNotFoundError",
    "UnknownLocaleError",
    # Modèle
    "OllamaBackend",
    "PromptAssembler",
    # Langues et nombres
    "LOCALES",
    "Locale",
    "get_locale",
    "PlaceholderMap",
    "preprocess",
    "postprocess",
    # Qualité et journaux
    "QualityGate",
    "QualityReport",
    "ReviewLog",
    "RunSummary",
    "TranslationCache",
]
