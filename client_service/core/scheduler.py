"""
Module de planification des exécutions de chef-client

Pour les styles d'init sans superviseur (bsd, none), l'outil peut
lancer lui-même chef-client à intervalle régulier :
- Intervalle issu de l'attribut 'interval'
- Délai aléatoire (splay) avant chaque exécution
- Exécution dans un thread en arrière-plan
"""

import random
import threading
from datetime import datetime
from typing import Callable, Optional

import schedule


class ClientRunScheduler:
    """
    Planificateur des exécutions périodiques de chef-client

    Utilise un ordonnanceur 'schedule' propre à l'instance pour ne pas
    partager les tâches avec le reste du processus.
    """

    def __init__(self, interval: int, splay: int, logger, run_callback: Callable[[], None],
                 poll_interval: float = 1.0):
        """
        Initialise le scheduler

        Args:
            interval: Secondes entre deux exécutions
            splay: Délai aléatoire maximum avant une exécution
            logger: Logger de l'application
            run_callback: Fonction lançant une exécution de chef-client
            poll_interval: Période de vérification des tâches
        """
        self.interval = int(interval)
        self.splay = int(splay)
        self.logger = logger
        self.run_callback = run_callback
        self.poll_interval = poll_interval

        self.is_running = False
        self.scheduler_thread = None
        self.stop_event = threading.Event()

        self.scheduler = schedule.Scheduler()
        self.last_run = None
        self.run_count = 0

        self._setup_schedule()

    def _setup_schedule(self):
        self.scheduler.clear()
        self.scheduler.every(self.interval).seconds.do(self._scheduled_run)
        self.logger.info(f"Planification configurée: toutes les {self.interval}s (splay {self.splay}s)")

    def _splay_delay(self) -> int:
        return random.randint(0, self.splay) if self.splay > 0 else 0

    def _scheduled_run(self):
        """
        Exécution planifiée : attend le splay puis lance chef-client
        """
        delay = self._splay_delay()
        if delay:
            self.logger.debug(f"Attente de {delay}s avant l'exécution (splay)")
            if self.stop_event.wait(timeout=delay):
                return

        self._run()

    def _run(self):
        self.logger.info("=== Exécution de chef-client ===")
        try:
            self.run_callback()
        except Exception:
            self.logger.exception("Erreur lors de l'exécution de chef-client")
        finally:
            self.last_run = datetime.now()
            self.run_count += 1

    def start(self):
        """
        Démarre le scheduler en arrière-plan
        """
        if self.is_running:
            self.logger.warning("Scheduler déjà en cours d'exécution")
            return

        self.is_running = True
        self.stop_event.clear()

        self.scheduler_thread = threading.Thread(
            target=self._scheduler_loop,
            name="ClientRunScheduler",
            daemon=True
        )
        self.scheduler_thread.start()
        self.logger.info("Scheduler démarré")

    def stop(self):
        """
        Arrête le scheduler et attend la fin du thread
        """
        if not self.is_running:
            self.logger.warning("Scheduler pas en cours d'exécution")
            return

        self.is_running = False
        self.stop_event.set()

        if self.scheduler_thread and self.scheduler_thread.is_alive():
            self.scheduler_thread.join(timeout=5)

        self.logger.info("Scheduler arrêté")

    def _scheduler_loop(self):
        while not self.stop_event.is_set():
            self.scheduler.run_pending()
            self.stop_event.wait(timeout=self.poll_interval)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Bloque jusqu'à l'arrêt du scheduler, retourne True si arrêté"""
        return self.stop_event.wait(timeout=timeout)

    def force_run(self):
        """
        Force une exécution immédiate, sans splay
        """
        self.logger.info("Exécution forcée demandée")
        self._run()

    def get_status(self) -> dict:
        next_run = self.scheduler.next_run
        return {
            'is_running': self.is_running,
            'interval': self.interval,
            'splay': self.splay,
            'run_count': self.run_count,
            'last_run': self.last_run.isoformat() if self.last_run else None,
            'next_run': next_run.isoformat() if next_run else None,
        }
