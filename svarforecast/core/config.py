'''
Configuration management for the SVAR forecast toolbox.

Settings are organised in dataclass sections and resolved in layers:

1. Defaults built into the package
2. An optional user configuration file (JSON)
3. Environment variables named SVARFORECAST_<SECTION>_<OPTION>
4. Runtime modifications through set_config

The user configuration directory defaults to ~/.svarforecast and can be moved
with the SVARFORECAST_CONFIG_DIR environment variable. Nothing is written to
disk unless save_config is called.
'''

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import ConfigurationError

logger = logging.getLogger("svarforecast.core.config")

CONFIG_ENV_PREFIX = "SVARFORECAST_"
DEFAULT_CONFIG_FILENAME = "svarforecast_config.json"
USER_CONFIG_DIR_ENV = "SVARFORECAST_CONFIG_DIR"

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class CoreConfig:
    """
    Core configuration settings.

    Attributes:
        random_seed: Seed used when a forecast call receives no random_state
            (None draws fresh entropy from the operating system)
    """
    random_seed: Optional[int] = None


@dataclass
class PerformanceConfig:
    """
    Performance configuration settings.

    Attributes:
        max_workers: Maximum number of worker threads used across posterior
            draws (None uses the number of CPUs)
        parallel_threshold: Number of posterior draws below which the draws
            are simulated serially
    """
    max_workers: Optional[int] = None
    parallel_threshold: int = 64


@dataclass
class NumericalConfig:
    """
    Numerical tolerances.

    Attributes:
        max_condition_number: Condition number above which a posterior draw of
            B is treated as singular
        constraint_tolerance: Relative residual above which a conditional
            forecast constraint system is declared infeasible
        stochastic_tolerance: Tolerance on the row sums of transition matrices
    """
    max_condition_number: float = 1e12
    constraint_tolerance: float = 1e-8
    stochastic_tolerance: float = 1e-6


@dataclass
class LoggingConfig:
    """
    Logging configuration settings.

    Attributes:
        log_level: Level of the package logger
        log_format: Format string of the console handler
        console_logging: Whether to attach a console handler
    """
    log_level: str = "WARNING"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    console_logging: bool = True


@dataclass
class SVARForecastConfig:
    """
    Complete configuration combining all sections.
    """
    core: CoreConfig = field(default_factory=CoreConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)
    numerical: NumericalConfig = field(default_factory=NumericalConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigManager:
    """
    Configuration manager for the SVAR forecast toolbox.

    The manager resolves the configuration layers lazily on first access and
    exposes get/set/reset operations keyed by section and option name.

    Attributes:
        _config: The current configuration object
        _initialized: Whether the layers have been resolved
        _config_file: Path to the user configuration file
    """

    def __init__(self):
        """Initialize the configuration manager with default settings."""
        self._config = SVARForecastConfig()
        self._initialized = False
        self._config_file: Optional[Path] = None
        self._modified_keys = set()

    def initialize(self) -> None:
        """
        Resolve the configuration layers.

        This method:
        1. Locates the user configuration file
        2. Loads user configuration from file if available
        3. Applies environment variable overrides
        4. Validates the configuration
        5. Sets up logging based on configuration
        """
        if self._initialized:
            return

        env_config_dir = os.environ.get(USER_CONFIG_DIR_ENV)
        config_dir = Path(env_config_dir) if env_config_dir else Path.home() / ".svarforecast"
        self._config_file = config_dir / DEFAULT_CONFIG_FILENAME

        self._load_user_config()
        self._apply_env_overrides()
        self._validate_config()
        self._setup_logging()

        self._initialized = True
        logger.debug("Configuration manager initialized")

    def _load_user_config(self) -> None:
        """Load user configuration from file if it exists."""
        if not self._config_file or not self._config_file.exists():
            logger.debug("No user configuration file found")
            return

        try:
            with open(self._config_file, 'r') as f:
                user_config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Failed to read user configuration file: {e}",
                details=str(self._config_file)
            ) from e

        self._update_from_dict(user_config)
        logger.debug(f"Loaded user configuration from {self._config_file}")

    def _apply_env_overrides(self) -> None:
        """Apply SVARFORECAST_<SECTION>_<OPTION> environment variables."""
        for env_var, value in os.environ.items():
            if not env_var.startswith(CONFIG_ENV_PREFIX) or env_var == USER_CONFIG_DIR_ENV:
                continue

            key = env_var[len(CONFIG_ENV_PREFIX):]
            parts = key.lower().split('_', 1)
            if len(parts) != 2:
                continue

            section, option = parts
            section_obj = getattr(self._config, section, None)
            if section_obj is None or not hasattr(section_obj, option):
                continue

            typed_value = self._coerce(section, option, value)
            setattr(section_obj, option, typed_value)
            logger.debug(f"Applied environment override: {env_var}={value}")

    def _coerce(self, section: str, option: str, value: str) -> Any:
        """Convert an environment string to the type of the option's default."""
        default = getattr(getattr(SVARForecastConfig(), section), option)
        try:
            if value.lower() in ("none", "") and default is None:
                return None
            if isinstance(default, bool):
                return value.lower() in ('true', 'yes', '1', 'y')
            if isinstance(default, int) or (default is None and option in ("max_workers", "random_seed")):
                return int(value)
            if isinstance(default, float):
                return float(value)
        except ValueError as e:
            raise ConfigurationError(
                f"Cannot convert environment value for {section}.{option}",
                section=section,
                option=option,
                value=value
            ) from e
        return value

    def _update_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """Update the configuration from a nested dictionary."""
        for section, options in config_dict.items():
            section_obj = getattr(self._config, section, None)
            if section_obj is None or not isinstance(options, dict):
                logger.warning(f"Ignoring unknown configuration section: {section}")
                continue
            for option, value in options.items():
                if not hasattr(section_obj, option):
                    logger.warning(f"Ignoring unknown configuration option: {section}.{option}")
                    continue
                setattr(section_obj, option, value)

    def _validate_config(self) -> None:
        """
        Validate constraints on configuration values.

        Raises:
            ConfigurationError: If any option holds an invalid value
        """
        perf = self._config.performance
        if perf.max_workers is not None and (not isinstance(perf.max_workers, int) or perf.max_workers < 1):
            raise ConfigurationError(
                "max_workers must be a positive integer or None",
                section="performance", option="max_workers", value=perf.max_workers
            )
        if not isinstance(perf.parallel_threshold, int) or perf.parallel_threshold < 0:
            raise ConfigurationError(
                "parallel_threshold must be a non-negative integer",
                section="performance", option="parallel_threshold", value=perf.parallel_threshold
            )

        num = self._config.numerical
        for option in ("max_condition_number", "constraint_tolerance", "stochastic_tolerance"):
            value = getattr(num, option)
            if not isinstance(value, (int, float)) or value <= 0:
                raise ConfigurationError(
                    f"{option} must be a positive number",
                    section="numerical", option=option, value=value
                )

        seed = self._config.core.random_seed
        if seed is not None and (not isinstance(seed, int) or seed < 0):
            raise ConfigurationError(
                "random_seed must be a non-negative integer or None",
                section="core", option="random_seed", value=seed
            )

        level = self._config.logging.log_level
        if not isinstance(level, str) or level.upper() not in _VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"log_level must be one of {', '.join(_VALID_LOG_LEVELS)}",
                section="logging", option="log_level", value=level
            )

    def _setup_logging(self) -> None:
        """Configure the package logger from the logging section."""
        package_logger = logging.getLogger("svarforecast")

        for handler in package_logger.handlers[:]:
            package_logger.removeHandler(handler)

        package_logger.setLevel(getattr(logging, self._config.logging.log_level.upper()))

        if self._config.logging.console_logging:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(logging.Formatter(self._config.logging.log_format))
            package_logger.addHandler(console_handler)

    def get(self, section: str, option: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            section: The configuration section
            option: The configuration option
            default: Value returned when the option does not exist

        Returns:
            The configuration value
        """
        self.initialize()
        section_obj = getattr(self._config, section, None)
        if section_obj is None:
            return default
        return getattr(section_obj, option, default)

    def set(self, section: str, option: str, value: Any) -> None:
        """
        Set a configuration value at runtime.

        Args:
            section: The configuration section
            option: The configuration option
            value: The new value

        Raises:
            ConfigurationError: If the section or option does not exist or the
                value is invalid
        """
        self.initialize()
        section_obj = getattr(self._config, section, None)
        if section_obj is None:
            raise ConfigurationError(f"Unknown configuration section: {section}", section=section)
        if option not in {f.name for f in fields(section_obj)}:
            raise ConfigurationError(
                f"Unknown configuration option: {section}.{option}",
                section=section, option=option
            )

        previous = getattr(section_obj, option)
        setattr(section_obj, option, value)
        try:
            self._validate_config()
        except ConfigurationError:
            setattr(section_obj, option, previous)
            raise

        self._modified_keys.add(f"{section}.{option}")
        if section == "logging":
            self._setup_logging()
        logger.debug(f"Set configuration {section}.{option}={value!r}")

    def reset(self, section: Optional[str] = None, option: Optional[str] = None) -> None:
        """
        Reset configuration to its resolved baseline.

        The baseline is the built-in defaults with the user configuration file
        and environment overrides applied, so only runtime changes are undone.

        Args:
            section: Section to reset (None resets everything)
            option: Option to reset within the section (None resets the section)
        """
        self.initialize()
        defaults = self._baseline()
        if section is None:
            self._config = defaults
            self._modified_keys.clear()
        elif option is None:
            setattr(self._config, section, getattr(defaults, section))
            self._modified_keys = {k for k in self._modified_keys if not k.startswith(f"{section}.")}
        else:
            setattr(getattr(self._config, section), option, getattr(getattr(defaults, section), option))
            self._modified_keys.discard(f"{section}.{option}")

        self._setup_logging()

    def _baseline(self) -> SVARForecastConfig:
        """Resolve defaults, user file and environment into a fresh configuration."""
        current = self._config
        self._config = SVARForecastConfig()
        try:
            self._load_user_config()
            self._apply_env_overrides()
            return self._config
        finally:
            self._config = current

    def is_modified(self, section: str, option: str) -> bool:
        """Return whether an option was modified at runtime."""
        return f"{section}.{option}" in self._modified_keys

    def save_user_config(self) -> Path:
        """
        Save the current configuration to the user configuration file.

        Returns:
            Path: The file written
        """
        self.initialize()
        self._config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self._config_file, 'w') as f:
            json.dump(asdict(self._config), f, indent=4)
        logger.info(f"Saved configuration to {self._config_file}")
        return self._config_file


_config_manager = ConfigManager()


def get_config_manager() -> ConfigManager:
    """Return the global configuration manager."""
    return _config_manager


def get_config(section: str, option: str, default: Any = None) -> Any:
    """Get a configuration value from the global manager."""
    return _config_manager.get(section, option, default)


def set_config(section: str, option: str, value: Any) -> None:
    """Set a configuration value on the global manager."""
    _config_manager.set(section, option, value)


def reset_config(section: Optional[str] = None, option: Optional[str] = None) -> None:
    """Reset configuration values on the global manager."""
    _config_manager.reset(section, option)


def save_config() -> Path:
    """Save the global configuration to the user configuration file."""
    return _config_manager.save_user_config()
