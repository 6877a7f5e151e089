"""Configuration for balance ledgers using Pydantic v2 models.

Ledger baselines (initial balance, initial timestamp, timestamp verification)
and logging behaviour can be declared in a YAML file and loaded into a
validated :class:`Config`.

Examples:
    Load a ledger baseline from YAML::

        config = Config.from_yaml(Path("ledger.yaml"))
        config.setup_logging()
        ledger = Ledger.from_config(config.ledger, entries=rows)

    A matching ``ledger.yaml``::

        ledger:
          initial_balance: "100.00"
          initial_timestamp: "2018-01-01T00:00:00Z"
          verify_timestamp: true
        logging:
          level: DEBUG
"""

from decimal import Decimal
import logging
from pathlib import Path
import sys
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator
import yaml

from .decimal_utils import to_decimal
from .timestamps import normalize_timestamp


class LedgerConfig(BaseModel):
    """Baseline configuration for a ledger.

    Attributes:
        initial_balance: Balance assumed before the first entry.
        initial_timestamp: Canonical time assumed before the first entry.
        verify_timestamp: Enforce non-decreasing entry timestamps.
    """

    initial_balance: Decimal = Field(
        default=Decimal("0"), description="Balance before the first entry"
    )
    initial_timestamp: Optional[str] = Field(
        default=None, description="Time before the first entry (None=first entry is baseline)"
    )
    verify_timestamp: bool = Field(default=True, description="Enforce timestamp ordering")

    @field_validator("initial_balance", mode="before")
    @classmethod
    def parse_initial_balance(cls, v: Any) -> Decimal:
        """Parse the balance through the exact decimal path.

        Args:
            v: Balance as int, float, str or Decimal.

        Returns:
            Exact Decimal balance.

        Raises:
            ValueError: If the value is not a readable finite number.
        """
        value = to_decimal(v)
        if not value.is_finite():
            raise ValueError(f"Initial balance must be finite, got {value}")
        return value

    @field_validator("initial_timestamp", mode="before")
    @classmethod
    def normalize_initial_timestamp(cls, v: Any) -> Optional[str]:
        """Normalize the timestamp to canonical ISO-8601 UTC form."""
        if v is None:
            return None
        return normalize_timestamp(v)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Controls logging behavior including level, output destinations,
    and message formatting.
    """

    enabled: bool = Field(default=True, description="Enable logging")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    log_file: Optional[str] = Field(
        default=None, description="Log file path (None=no file logging)"
    )
    console_output: bool = Field(default=True, description="Log to console")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )


class Config(BaseModel):
    """Complete configuration: ledger baseline plus logging."""

    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file.

        Returns:
            Config object with validated parameters.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ValueError: If the top level of the file is not a mapping.
            ValidationError: If configuration is invalid.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(
                f"Configuration file must contain a mapping at the top level: {path}"
            )

        # Remove private anchors if present
        data = {k: v for k, v in data.items() if not k.startswith("_")}

        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save configuration to YAML file.

        Decimals are written as strings so balances reload exactly.

        Args:
            path: Path where to save the configuration.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)

    def setup_logging(self) -> None:
        """Configure the ``balance_ledger`` logger based on settings.

        Sets up logging handlers for console and/or file output based
        on the logging configuration.
        """
        if not self.logging.enabled:
            return

        logger = logging.getLogger("balance_ledger")
        logger.setLevel(getattr(logging, self.logging.level))
        logger.handlers.clear()

        formatter = logging.Formatter(self.logging.format)

        if self.logging.console_output:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        if self.logging.log_file:
            log_path = Path(self.logging.log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
