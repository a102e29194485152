"""Configuration loader and validation for extraction and matching settings."""

from decimal import Decimal
from pathlib import Path
from typing import Any, Literal, Optional
import logging

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .models.transaction import MatchingOptions
from .matching.scoring import (
    AMOUNT_PENALTY_CAP,
    AMOUNT_PENALTY_FACTOR,
    DAY_PENALTY,
    MIN_MATCH_SCORE,
    ScoringWeights,
)
from .parsers.cells import DATE_SERIAL_MAX, DATE_SERIAL_MIN
from .utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ColumnMappingConfig(BaseModel):
    """Zero-based column indices for statements with a fixed, known layout."""

    date_column: int = 0
    description_column: int = 1
    amount_column: int = 2
    balance_column: Optional[int] = None
    skip_rows: int = 1


class ExtractionConfig(BaseModel):
    """Configuration for statement extraction."""

    mode: Literal["heuristic", "fixed_columns"] = "heuristic"
    default_description: str = "Bank transaction"
    date_serial_min: float = DATE_SERIAL_MIN
    date_serial_max: float = DATE_SERIAL_MAX
    column_mapping: ColumnMappingConfig = Field(default_factory=ColumnMappingConfig)


class ScoringConfig(BaseModel):
    """Match score weights."""

    min_match_score: float = MIN_MATCH_SCORE
    day_penalty: float = DAY_PENALTY
    amount_penalty_factor: float = AMOUNT_PENALTY_FACTOR
    amount_penalty_cap: float = AMOUNT_PENALTY_CAP


class MatchingConfig(BaseModel):
    """Configuration for the matcher."""

    date_tolerance_days: int = 2
    amount_tolerance: Decimal = Decimal("0.01")
    use_fuzzy_matching: bool = False
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)

    @field_validator("amount_tolerance", mode="before")
    @classmethod
    def _float_as_text(cls, value: Any) -> Any:
        # YAML yields floats; go through str so 0.01 stays exactly 0.01
        return str(value) if isinstance(value, float) else value

    def to_options(self) -> MatchingOptions:
        """Build validated matching options; raises InvalidConfigurationError."""
        return MatchingOptions(
            date_tolerance_days=self.date_tolerance_days,
            amount_tolerance=self.amount_tolerance,
            use_fuzzy_matching=self.use_fuzzy_matching,
        )

    def to_weights(self) -> ScoringWeights:
        scoring = self.scoring
        return ScoringWeights(
            min_match_score=Decimal(str(scoring.min_match_score)),
            day_penalty=Decimal(str(scoring.day_penalty)),
            amount_penalty_factor=Decimal(str(scoring.amount_penalty_factor)),
            amount_penalty_cap=Decimal(str(scoring.amount_penalty_cap)),
        )


class LedgerConfig(BaseModel):
    """Configuration for ledger CSV exports."""

    encoding: str = "utf-8"
    delimiter: str = ","
    date_format: str = "%Y-%m-%d"
    column_mappings: dict[str, str] = Field(
        default_factory=lambda: {
            "id": "id",
            "date": "date",
            "amount": "amount",
            "description": "description",
            "type": "type",
            "account_id": "account_id",
        }
    )


class ExcelOutputConfig(BaseModel):
    """Configuration for Excel output."""

    filename_template: str = "reconciliation_report_{date}_{time}.xlsx"
    include_timestamp: bool = True


class SheetConfig(BaseModel):
    """Configuration for a report sheet."""

    enabled: bool = True
    name: str


class SheetsConfig(BaseModel):
    """Configuration for all report sheets."""

    summary: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Summary"))
    matched: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Matched"))
    unmatched_bank: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Unmatched Bank")
    )
    unmatched_app: SheetConfig = Field(
        default_factory=lambda: SheetConfig(name="Unmatched Ledger")
    )


class OutputConfig(BaseModel):
    """Configuration for output."""

    excel: ExcelOutputConfig = Field(default_factory=ExcelOutputConfig)
    sheets: SheetsConfig = Field(default_factory=SheetsConfig)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ReconConfig(BaseModel):
    """Main configuration model."""

    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    config_file_path: Optional[str] = None


def get_default_config() -> dict[str, Any]:
    """Return the default configuration as a dictionary."""
    return {
        "extraction": {
            "mode": "heuristic",
            "default_description": "Bank transaction",
            "date_serial_min": DATE_SERIAL_MIN,
            "date_serial_max": DATE_SERIAL_MAX,
            "column_mapping": {
                "date_column": 0,
                "description_column": 1,
                "amount_column": 2,
                "balance_column": None,
                "skip_rows": 1,
            },
        },
        "matching": {
            "date_tolerance_days": 2,
            "amount_tolerance": 0.01,
            "use_fuzzy_matching": False,
            "scoring": {
                "min_match_score": MIN_MATCH_SCORE,
                "day_penalty": DAY_PENALTY,
                "amount_penalty_factor": AMOUNT_PENALTY_FACTOR,
                "amount_penalty_cap": AMOUNT_PENALTY_CAP,
            },
        },
        "ledger": {
            "encoding": "utf-8",
            "delimiter": ",",
            "date_format": "%Y-%m-%d",
            "column_mappings": {
                "id": "id",
                "date": "date",
                "amount": "amount",
                "description": "description",
                "type": "type",
                "account_id": "account_id",
            },
        },
        "output": {
            "excel": {
                "filename_template": "reconciliation_report_{date}_{time}.xlsx",
                "include_timestamp": True,
            },
            "sheets": {
                "summary": {"enabled": True, "name": "Summary"},
                "matched": {"enabled": True, "name": "Matched"},
                "unmatched_bank": {"enabled": True, "name": "Unmatched Bank"},
                "unmatched_app": {"enabled": True, "name": "Unmatched Ledger"},
            },
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        },
    }


def load_config(config_path: Optional[Path] = None) -> ReconConfig:
    """
    Load configuration from a YAML file or use defaults.

    Args:
        config_path: Path to YAML configuration file (optional)

    Returns:
        ReconConfig object with loaded or default settings

    Raises:
        ConfigurationError: If the file is not valid YAML or fails validation
    """
    config_dict = get_default_config()

    if config_path and config_path.exists():
        logger.info(f"Loading configuration from: {config_path}")
        try:
            with open(config_path, "r") as f:
                user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(user_config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

        config_dict = _deep_merge(config_dict, user_config)
        config_dict["config_file_path"] = str(config_path)
    else:
        logger.info("Using default configuration")

    try:
        return ReconConfig(**config_dict)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge on top

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def generate_default_config(output_path: Path) -> None:
    """
    Generate a default configuration file.

    Args:
        output_path: Path to write the configuration file
    """
    yaml_content = """# Bank statement reconciliation configuration
# Generated configuration file - customize as needed

"""
    yaml_content += yaml.dump(get_default_config(), default_flow_style=False, sort_keys=False)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        f.write(yaml_content)

    logger.info(f"Generated configuration file: {output_path}")
