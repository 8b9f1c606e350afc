import logging
import os
import sys
from logging.handlers import RotatingFileHandler


LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s:%(lineno)d - %(pathname)s - %(message)s'


class Logger:
    """Process wide logger for the monitor and its HTTP service."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Logger, cls).__new__(cls)
            cls._instance._setup_logger()
        return cls._instance

    def _setup_logger(self):
        self.logger = logging.getLogger('VPNWatch')
        self.logger.setLevel(os.environ.get('VPNWATCH_LOG_LEVEL', 'INFO').upper())
        self.formatter = logging.Formatter(LOG_FORMAT)

        package_root = os.path.dirname(os.path.dirname(__file__))
        self.log_dir = os.environ.get('VPNWATCH_LOG_DIR', os.path.join(package_root, 'logs'))
        os.makedirs(self.log_dir, exist_ok=True)
        log_file = os.path.join(self.log_dir, 'vpnwatch.log')

        # Rotate at 5 MiB, keep 3 backups
        file_handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024,
                                           backupCount=3)
        file_handler.setFormatter(self.formatter)
        self.logger.addHandler(file_handler)

    def set_level(self, level: str) -> None:
        self.logger.setLevel(level.upper())

    def enable_console(self) -> None:
        """Mirror records to stderr, used when running the service in the foreground."""
        if any(getattr(h, 'name', None) == 'console' for h in self.logger.handlers):
            return
        console = logging.StreamHandler(sys.stderr)
        console.set_name('console')
        console.setFormatter(self.formatter)
        self.logger.addHandler(console)

    def get_logger(self):
        return self.logger


logger = Logger().get_logger()
