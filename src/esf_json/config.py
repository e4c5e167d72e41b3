"""
Configuration management using Pydantic Settings.

Provides type-safe access to:
- Record markers the ESF parser dispatches on (loaded from records.yaml)
- Runtime settings for the batch driver and CLI (environment variables / .env)
"""

from pathlib import Path
from typing import List, Optional
import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RecordMarkers(BaseSettings):
    """
    Declared types and tag names that carry domain meaning in ESF XML.

    Loaded automatically from the packaged records.yaml. Values passed
    explicitly (e.g., from tests) or through ESF_JSON_MARKER_* environment
    variables take precedence over the YAML file.

    Attributes:
        military_force_type: Declared type of the 2-field military force record
        army_type: Declared type of the composite army record
        units_array_type: Declared type of the units container
        unit_tag: Tag name of leaf unit records (attributes only)
        container_tags: Tag names of generic recursive containers
        signed_tag: Tag name of unnamed signed integer scalars
        unsigned_tag: Tag name of unnamed unsigned integer scalars
        no_marker_tag: Tag name of the "not under siege" sentinel

    Example:
        >>> markers = RecordMarkers()
        >>> markers.army_type
        'ARMY'
        >>> markers.is_container('ary')
        True
    """

    military_force_type: str = Field(default="MILITARY_FORCE")
    army_type: str = Field(default="ARMY")
    units_array_type: str = Field(default="UNITS_ARRAY")
    unit_tag: str = Field(default="land_unit")
    container_tags: List[str] = Field(default_factory=lambda: ["rec", "ary"])
    signed_tag: str = Field(default="i")
    unsigned_tag: str = Field(default="u")
    no_marker_tag: str = Field(default="no")

    model_config = SettingsConfigDict(
        env_prefix='ESF_JSON_MARKER_',
        extra='ignore'
    )

    @model_validator(mode='before')
    @classmethod
    def load_yaml_config(cls, data: dict) -> dict:
        """
        Layer explicit and environment values over records.yaml.

        The file is looked up next to this module first, then under
        config/records.yaml relative to the working directory. Markers
        given neither way nor in the file fall back to field defaults.
        """
        config_path = Path(__file__).parent / 'records.yaml'
        if not config_path.exists():
            config_path = Path('config/records.yaml')

        if not config_path.exists():
            raise FileNotFoundError(
                f"Record markers file not found at {config_path}. "
                f"Ensure records.yaml is installed with the esf_json package."
            )

        with open(config_path, 'r', encoding='utf-8') as f:
            yaml_data = yaml.safe_load(f) or {}

        types = yaml_data.get('types', {})
        tags = yaml_data.get('tags', {})
        loaded = {
            'military_force_type': types.get('military_force'),
            'army_type': types.get('army'),
            'units_array_type': types.get('units_array'),
            'unit_tag': tags.get('unit'),
            'container_tags': tags.get('containers'),
            'signed_tag': tags.get('signed'),
            'unsigned_tag': tags.get('unsigned'),
            'no_marker_tag': tags.get('no_marker'),
        }
        file_values = {k: v for k, v in loaded.items() if v is not None}
        return {**file_values, **(data or {})}

    def is_container(self, tag: str) -> bool:
        """Check if a tag name is one of the generic recursive containers."""
        return tag in self.container_tags


_record_markers: Optional[RecordMarkers] = None


def get_record_markers() -> RecordMarkers:
    """
    Get global record markers instance (lazy-loaded singleton).

    Returns:
        Singleton RecordMarkers instance
    """
    global _record_markers
    if _record_markers is None:
        _record_markers = RecordMarkers()
    return _record_markers


class AppConfig(BaseSettings):
    """
    Runtime configuration loaded from environment variables.

    Environment Variables (from .env, prefix ESF_JSON_):
        ESF_JSON_INPUT_DIR: Root directory holding per-faction XML folders
        ESF_JSON_OUTPUT_DIR: Root directory for converted JSON
        ESF_JSON_SUB_DIRS: JSON list of per-faction sub-directories to process
        ESF_JSON_MAX_WORKERS: Worker processes for batch conversion
        ESF_JSON_JSON_INDENT: Indentation of written JSON files
        ESF_JSON_AGGREGATE_ARMIES: Build army_final.json after each army folder
        ESF_JSON_FINAL_ARMY_FILENAME: File name of the aggregated army array
        ESF_JSON_LOG_LEVEL: Default log level for the CLI

    Example:
        >>> config = get_app_config()
        >>> config.sub_dirs
        ['army', 'region']
    """

    input_dir: str = Field(
        default="output/xml",
        description="Root directory containing one sub-directory per faction"
    )

    output_dir: str = Field(
        default="output/json",
        description="Root directory for converted JSON documents"
    )

    sub_dirs: List[str] = Field(
        default_factory=lambda: ["army", "region"],
        description="Per-faction sub-directories to convert"
    )

    max_workers: int = Field(
        default=1,
        ge=1,
        description="Number of worker processes (1 = sequential)"
    )

    json_indent: int = Field(
        default=2,
        ge=0,
        description="Indentation width of written JSON"
    )

    aggregate_armies: bool = Field(
        default=True,
        description="Aggregate converted armies into a single array per faction"
    )

    final_army_filename: str = Field(
        default="army_final.json",
        description="File name of the aggregated army array"
    )

    log_level: str = Field(
        default="INFO",
        description="Log level used by the CLI when --verbose is not given"
    )

    model_config = SettingsConfigDict(
        env_prefix='ESF_JSON_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )


_app_config: Optional[AppConfig] = None


def get_app_config() -> AppConfig:
    """
    Get global application config instance (lazy-loaded singleton).

    Returns:
        Singleton AppConfig instance
    """
    global _app_config
    if _app_config is None:
        _app_config = AppConfig()
    return _app_config
