"""
Point d'entrée principal de chef-client-service

Ce module orchestre l'installation et la gestion du service chef-client :
- Installation du service selon le style d'init de la plateforme
- Configuration du dépôt de paquets
- Cycle de vie du service (démarrage, arrêt, statut, désinstallation)
- Exécution périodique au premier plan pour les plateformes sans superviseur
"""

import sys
import json
import signal
import argparse
import threading

from client_service.core.binary import ClientBinaryNotFound
from client_service.core.config import ConfigurationError, ServiceConfig, create_default_config
from client_service.core.logger import ServiceLogger
from client_service.services.service_manager import ServiceManager


MODES = ['install', 'repository', 'start', 'stop', 'restart', 'status', 'uninstall', 'run', 'attributes']


class ChefClientService:
    """
    Application principale

    Relie la configuration, le logging et le gestionnaire de service
    pour chaque mode de la ligne de commande.
    """

    def __init__(self, config_path=None, dry_run=False, console_stream=None):
        """
        Args:
            config_path: Chemin vers le fichier de configuration
            dry_run: Simulation sans modification du système
            console_stream: Flux des logs console (stdout par défaut)
        """
        self.config = ServiceConfig(config_path)

        self.logger = ServiceLogger(self.config, console_stream)
        self.app_logger = self.logger.get_logger()

        self.manager = ServiceManager(self.config, dry_run=dry_run)
        self.scheduler = None

        self.running = False
        self.shutdown_event = threading.Event()

    def run_foreground_mode(self) -> int:
        """
        Lance chef-client toutes les 'interval' secondes (splay aléatoire)
        jusqu'à réception d'un signal d'arrêt
        """
        self.app_logger.info("Démarrage de l'exécution périodique de chef-client")

        try:
            self.scheduler = self.manager.create_scheduler()
            self._setup_signal_handlers()

            self.scheduler.start()
            self.running = True
            self.scheduler.force_run()

            self.app_logger.info("✅ Exécution périodique démarrée")
            self.app_logger.info("Appuyez sur Ctrl+C pour arrêter")

            while self.running and not self.shutdown_event.is_set():
                self.shutdown_event.wait(timeout=1.0)

        except KeyboardInterrupt:
            self.app_logger.info("Interruption clavier détectée")
        finally:
            self.shutdown()

        return 0

    def _setup_signal_handlers(self):
        """
        Configure les gestionnaires de signaux pour l'arrêt propre
        """
        def signal_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            self.app_logger.info(f"Signal {signal_name} reçu - Arrêt en cours...")
            self.shutdown()

        if hasattr(signal, 'SIGTERM'):
            signal.signal(signal.SIGTERM, signal_handler)

        if hasattr(signal, 'SIGINT'):
            signal.signal(signal.SIGINT, signal_handler)

        # Windows
        if hasattr(signal, 'SIGBREAK'):
            signal.signal(signal.SIGBREAK, signal_handler)

    def shutdown(self):
        """
        Arrête l'exécution périodique
        """
        if not self.running:
            return

        self.app_logger.info("🛑 Arrêt de l'exécution périodique...")
        self.running = False
        self.shutdown_event.set()

        if self.scheduler:
            self.scheduler.stop()

        self.app_logger.info("✅ Arrêt terminé")

    def get_attributes(self) -> dict:
        """
        Noeud détecté et attributs effectifs (défauts + surcharges)
        """
        return {
            'node': self.manager.node.to_dict(),
            'chef_client': self.manager.attributes,
        }


def print_status(status: dict):
    print(f"🔍 État du service chef-client ({status.get('init_style')}):")
    print(f"   Installé: {'✅' if status.get('installed') else '❌'}")
    print(f"   En cours: {'✅' if status.get('running') else '❌'}")
    if status.get('pids'):
        print(f"   PIDs: {', '.join(str(pid) for pid in status['pids'])}")
    if status.get('client_bin'):
        print(f"   Exécutable: {status['client_bin']}")
    if status.get('error'):
        print(f"   Erreur: {status['error']}")


def main(argv=None):
    """
    Point d'entrée principal avec gestion des arguments de ligne de commande
    """
    parser = argparse.ArgumentParser(
        description='Installe et gère chef-client comme service du système'
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        help='Chemin vers le fichier de configuration'
    )

    parser.add_argument(
        '--mode', '-m',
        choices=MODES,
        default='install',
        help='Opération à effectuer'
    )

    parser.add_argument(
        '--dry-run', '-n',
        action='store_true',
        help='Affiche les modifications sans les appliquer'
    )

    parser.add_argument(
        '--create-config',
        action='store_true',
        help='Crée un fichier de configuration par défaut'
    )

    parser.add_argument(
        '--validate-config',
        action='store_true',
        help='Valide la configuration actuelle'
    )

    args = parser.parse_args(argv)

    # Créer une configuration par défaut
    if args.create_config:
        if not args.config:
            print("❌ --create-config nécessite --config")
            return 1
        try:
            create_default_config(args.config)
            print(f"✅ Configuration par défaut créée: {args.config}")
            return 0
        except OSError as e:
            print(f"❌ Erreur création configuration: {e}")
            return 1

    try:
        # La sortie JSON de 'attributes' doit rester seule sur stdout
        console_stream = sys.stderr if args.mode == 'attributes' else None
        app = ChefClientService(args.config, dry_run=args.dry_run, console_stream=console_stream)
    except ConfigurationError as e:
        print(f"❌ Erreur de configuration: {e}")
        return 1

    # Valider la configuration
    if args.validate_config:
        if app.config.validate():
            print("✅ Configuration valide")
            return 0
        print("❌ Configuration invalide")
        return 1

    manager = app.manager

    try:
        if args.mode == 'install':
            success = manager.install_service()
            if success and manager.last_report is not None:
                print(f"✅ {manager.last_report.summary()}")
            return 0 if success else 1

        elif args.mode == 'repository':
            return 0 if manager.configure_repository() else 1

        elif args.mode == 'start':
            return 0 if manager.start_service() else 1

        elif args.mode == 'stop':
            return 0 if manager.stop_service() else 1

        elif args.mode == 'restart':
            return 0 if manager.restart_service() else 1

        elif args.mode == 'uninstall':
            return 0 if manager.uninstall_service() else 1

        elif args.mode == 'status':
            print_status(manager.get_service_status())
            return 0

        elif args.mode == 'attributes':
            print(json.dumps(app.get_attributes(), indent=2, ensure_ascii=False, default=str))
            return 0

        elif args.mode == 'run':
            return app.run_foreground_mode()

        return 0

    except ClientBinaryNotFound as e:
        app.app_logger.error(str(e))
        print(f"❌ {e}")
        return 1
    except KeyboardInterrupt:
        print("\n🛑 Arrêt demandé par l'utilisateur")
        return 0


if __name__ == '__main__':
    exit_code = main()
    sys.exit(exit_code)
