"""
Rechargement à chaud des fichiers de configuration, avec anti-rebond.

Un éditeur émet souvent plusieurs écritures par sauvegarde. Chaque
événement de changement relance un minuteur court ; le rechargement
n'est exécuté que lorsque le minuteur expire sans nouvel événement.

- Debouncer : minuteur annulable (threading.Timer) autour d'une action
- FileWatcher : thread qui surveille mtime/taille d'un fichier et
  alimente un Debouncer
- HotReloader : regroupe les watchers des différents stores
"""

import threading
from pathlib import Path
from typing import Callable, Optional

from ..logger import get_logger

logger = get_logger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3
DEFAULT_POLL_INTERVAL = 0.5


class Debouncer:
    """
    Exécute une action après une période de calme.

    L'action renvoie une valeur vraie quand le rechargement a abouti ; seul
    ce cas est annoncé.

    Example:
        >>> debouncer = Debouncer(store.reload, delay=0.3, label="glossary.json")
        >>> debouncer.trigger()
        >>> debouncer.trigger()  # annule le premier minuteur
        >>> # store.reload() est appelé une seule fois, 0.3s après le dernier trigger
    """

    def __init__(
        self,
        action: Callable[[], object],
        delay: float = DEFAULT_DEBOUNCE_SECONDS,
        label: str = "",
    ):
        self.action = action
        self.delay = delay
        self.label = label
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    def trigger(self) -> None:
        """Annule le rechargement en attente et en programme un nouveau."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self._run)
            self._timer.daemon = True
            self._timer.start()

    def _run(self) -> None:
        with self._lock:
            if self._timer is threading.current_thread():
                self._timer = None
        try:
            if self.action():
                print(f"♻ {self.label} modifié, rechargé.")
        except Exception as e:
            logger.warning(f"⚠ Rechargement de {self.label} échoué : {e}")

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class FileWatcher:
    """
    Surveille un fichier par scrutation et signale chaque modification.

    Une modification est un changement de date de modification ou de taille
    (création et suppression comprises).
    """

    def __init__(
        self,
        path: Path,
        on_change: Callable[[], None],
        interval: float = DEFAULT_POLL_INTERVAL,
    ):
        self.path = Path(path)
        self.on_change = on_change
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._signature = self._stat()

    def _stat(self) -> Optional[tuple[float, int]]:
        try:
            stat = self.path.stat()
        except OSError:
            return None
        return stat.st_mtime, stat.st_size

    def check(self) -> bool:
        """Compare l'état du fichier au précédent ; appelle on_change si différent."""
        signature = self._stat()
        if signature == self._signature:
            return False
        self._signature = signature
        self.on_change()
        return True

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            self.check()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._loop, name=f"watch-{self.path.name}", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.interval * 2)
            self._thread = None


class HotReloader:
    """Associe à chaque fichier surveillé un FileWatcher et un Debouncer."""

    def __init__(
        self,
        debounce: float = DEFAULT_DEBOUNCE_SECONDS,
        interval: float = DEFAULT_POLL_INTERVAL,
    ):
        self.debounce = debounce
        self.interval = interval
        self._watchers: list[tuple[FileWatcher, Debouncer]] = []

    def watch(self, path: Path, reload_action: Callable[[], object]) -> None:
        path = Path(path)
        debouncer = Debouncer(reload_action, delay=self.debounce, label=path.name)
        watcher = FileWatcher(path, debouncer.trigger, interval=self.interval)
        watcher.start()
        self._watchers.append((watcher, debouncer))
        print(f"👀 {path.name} : rechargement à chaud activé.")

    def stop(self) -> None:
        for watcher, debouncer in self._watchers:
            watcher.stop()
            debouncer.cancel()
        self._watchers.clear()
