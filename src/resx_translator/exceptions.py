"""
Exceptions spécifiques au traducteur de ressources.

Ce module définit les exceptions personnalisées levées par le client du
backend, la résolution des chemins du projet et le registre des langues.
"""

from typing import Optional


class BackendError(RuntimeError):
    """
    Exception levée quand un appel au backend de traduction échoue.

    Couvre les erreurs réseau, les statuts HTTP non 2xx et les lignes JSON
    illisibles dans la réponse streamée. Le pipeline l'intercepte entrée par
    entrée : l'entrée reste non traduite et le lot continue.

    Attributes:
        model: Nom du modèle interrogé
        status_code: Statut HTTP si disponible, None sinon
    """

    def __init__(
        self,
        message: str,
        model: str = "",
        status_code: Optional[int] = None,
    ):
        self.model = model
        self.status_code = status_code
        super().__init__(message)

    def __repr__(self) -> str:
        return f"BackendError(model={self.model!r}, status={self.status_code})"


class ProjectRootNotFoundError(FileNotFoundError):
    """
    Exception levée quand le dossier racine du projet est introuvable.

    Erreur fatale au démarrage : sans dossier `config/`, le programme ne sait
    pas où se trouvent ses entrées et doit s'arrêter avant tout traitement.
    """

    def __init__(self, start_dir: str):
        self.start_dir = start_dir
        super().__init__(
            f"Racine du projet introuvable (aucun dossier 'config' "
            f"en remontant depuis {start_dir})"
        )


class UnknownLocaleError(ValueError):
    """Code de langue absent du registre des langues supportées."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Langue inconnue : '{code}'")
