"""Configuration management for proto-glue."""

import json
from pathlib import Path
from typing import Dict, List

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.glue import ScalarType, resolve_scalar_type


class ConverterConfig(BaseModel): # Nested under Config (BaseSettings)
    """Configuration for proto loading and Glue schema conversion."""

    type_mapping: Dict[str, str] = Field(default_factory=dict, description="Overrides of the primitive tag -> Glue scalar type mapping, e.g. {'int32': 'BIG_INT', 'uint32': 'bigint'}.")
    include_paths: List[Path] = Field(default_factory=list, description="Extra import paths passed to protoc as -I, in addition to the proto file's own directory.")
    protoc_timeout_seconds: float = Field(default=60.0, gt=0, le=600, description="Timeout for a single protoc invocation.")

    @field_validator("type_mapping")
    @classmethod
    def validate_type_mapping(cls, v: Dict[str, str]) -> Dict[str, str]:
        for type_spec in v.values():
            resolve_scalar_type(type_spec) # Raises ValueError for unknown Glue types
        return v

    def resolved_type_mapping(self) -> Dict[str, ScalarType]:
        return {tag: resolve_scalar_type(type_spec) for tag, type_spec in self.type_mapping.items()}


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format ('json' or 'console')")


class Config(BaseSettings):
    """Main configuration for proto-glue. Loads from environment variables prefixed with PROTO_GLUE_."""

    model_config = SettingsConfigDict(
        env_prefix='PROTO_GLUE_',
        env_nested_delimiter='__', # e.g., PROTO_GLUE_CONVERTER__PROTOC_TIMEOUT_SECONDS
        extra='ignore',
        env_file='.env',
        env_file_encoding='utf-8'
    )

    converter: ConverterConfig = Field(default_factory=ConverterConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    app_version: str = Field(default="0.1.0", description="Version of the proto-glue software.")

    @classmethod
    def from_file(cls, file_path: Path) -> "Config":
        """Create configuration strictly from a JSON file.
        Environment variables are not layered on top.
        """
        with open(file_path) as f:
            config_data = json.load(f)
        return cls.model_validate(config_data)
