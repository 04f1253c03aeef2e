import os
import configparser
from pathlib import Path

from demand_planning.exceptions import ConfigError

class Config:
    """Configuration manager for the Demand Planning backend."""

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the configuration if not already initialized."""
        if self._initialized:
            return

        self._config_path = Path(
            os.getenv('DEMAND_PLANNING_CONFIG', str(Path('config') / 'settings.ini'))
        )
        self._config_dir = self._config_path.parent
        self._config = configparser.ConfigParser(interpolation=None)

        self._load_defaults()
        if self._config_path.exists():
            self._config.read(self._config_path)

        self._initialized = True

    def _load_defaults(self):
        """Populate the default configuration.

        Values read from settings.ini override these section by section.
        """
        self._config['DATABASE'] = {
            'engine': 'postgresql',
            'host': 'localhost',
            'port': '5432',
            'database': 'demand_planning',
            'username': 'postgres',
            'password': 'postgres',
            'echo': 'False',
            'pool_size': '10',
            'max_overflow': '20',
            'pool_timeout': '30',
            'pool_recycle': '1800'
        }

        self._config['LOGGING'] = {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            'directory': 'logs',
            'max_size_mb': '10',
            'backup_count': '5',
            'console_output': 'True',
            'file_output': 'True'
        }

        self._config['FORECAST'] = {
            'huber_k': '1.345',
            'max_iterations': '100',
            'tolerance': '1e-6',
            'scale_floor': '0.001',
            'mad_consistency': '1.4826',
            'service_level_z': '1.96'
        }

        self._config['BULK_UPDATE'] = {
            'min_percentage': '-100',
            'history_limit': '100'
        }

    def get(self, section, key, default=None):
        """Get configuration value."""
        try:
            return self._config.get(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default

    def get_int(self, section, key, default=None):
        """Get configuration value as integer."""
        try:
            return self._config.getint(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_float(self, section, key, default=None):
        """Get configuration value as float."""
        try:
            return self._config.getfloat(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_boolean(self, section, key, default=None):
        """Get configuration value as boolean."""
        try:
            return self._config.getboolean(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def set(self, section, key, value):
        """Set a configuration value for this process; settings.ini is not modified."""
        if not self._config.has_section(section):
            self._config.add_section(section)

        self._config.set(section, key, str(value))

    def get_db_url(self):
        """Generate SQLAlchemy database URL.

        A DATABASE.url option (or the DEMAND_PLANNING_DB_URL environment
        variable) takes precedence over the individual connection settings.
        """
        url = os.getenv('DEMAND_PLANNING_DB_URL') or self.get('DATABASE', 'url')
        if url:
            return url

        engine = self.get('DATABASE', 'engine', 'postgresql')
        username = self.get('DATABASE', 'username', 'postgres')
        password = self.get('DATABASE', 'password', 'postgres')
        host = self.get('DATABASE', 'host', 'localhost')
        port = self.get('DATABASE', 'port', '5432')
        database = self.get('DATABASE', 'database', 'demand_planning')

        return f"{engine}://{username}:{password}@{host}:{port}/{database}"

    @property
    def log_config(self):
        """Get logging configuration."""
        return {
            'level': self.get('LOGGING', 'level', 'INFO'),
            'format': self.get('LOGGING', 'format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
            'directory': self.get('LOGGING', 'directory', 'logs'),
            'max_size_mb': self.get_int('LOGGING', 'max_size_mb', 10),
            'backup_count': self.get_int('LOGGING', 'backup_count', 5),
            'console_output': self.get_boolean('LOGGING', 'console_output', True),
            'file_output': self.get_boolean('LOGGING', 'file_output', True)
        }

    @property
    def forecast_config(self):
        """Get robust forecasting and inventory parameter settings.

        Raises:
            ConfigError if a FORECAST value is out of range
        """
        settings = {
            'huber_k': self.get_float('FORECAST', 'huber_k', 1.345),
            'max_iterations': self.get_int('FORECAST', 'max_iterations', 100),
            'tolerance': self.get_float('FORECAST', 'tolerance', 1e-6),
            'scale_floor': self.get_float('FORECAST', 'scale_floor', 0.001),
            'mad_consistency': self.get_float('FORECAST', 'mad_consistency', 1.4826),
            'service_level_z': self.get_float('FORECAST', 'service_level_z', 1.96)
        }

        positive = ('huber_k', 'scale_floor', 'mad_consistency')
        invalid = [key for key in positive if not settings[key] > 0]
        invalid += [key for key in ('max_iterations', 'tolerance', 'service_level_z') if settings[key] < 0]
        if invalid:
            raise ConfigError(
                f"Invalid FORECAST setting(s): {', '.join(invalid)}",
                details={key: settings[key] for key in invalid}
            )

        return settings

    @property
    def bulk_update_config(self):
        """Get bulk modification settings."""
        return {
            'min_percentage': self.get_float('BULK_UPDATE', 'min_percentage', -100.0),
            'history_limit': self.get_int('BULK_UPDATE', 'history_limit', 100)
        }

# Global config instance
config = Config()
