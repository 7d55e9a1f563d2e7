"""
Configuration management for the pod security webhook using Pydantic.
"""

import os
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


RULE_OVERRIDE_PREFIX = "VALIDATE_"
RULE_DISABLED_VALUE = "false"


def rule_override_env(rule_name: str) -> str:
    """Environment variable that can disable ``rule_name``, e.g. ``VALIDATE_HOST_PID``."""
    return f"{RULE_OVERRIDE_PREFIX}{rule_name.replace('-', '_').upper()}"


class WebhookConfig(BaseSettings):
    """Server configuration for the admission webhook."""

    bind_address: str = "0.0.0.0"
    webhook_port: int = Field(default=8443, ge=1, le=65535)
    uds_path: Optional[str] = None

    tls_cert: Optional[Path] = Path("/ssl_certs/tls.crt")
    tls_key: Optional[Path] = Path("/ssl_certs/tls.key")

    debug: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def tls_enabled(self) -> bool:
        return bool(
            self.tls_cert
            and self.tls_key
            and Path(self.tls_cert).exists()
            and Path(self.tls_key).exists()
        )

    def export_json(self) -> str:
        return self.model_dump_json(indent=2)


class ValidationConfig(BaseSettings):
    """
    Settings consumed by the validation rules.

    ``rule_overrides`` holds every ``VALIDATE_*`` variable present when the
    settings were loaded. It is resolved once and never re-read from the
    environment while requests are being served.
    """

    trusted_image_registry: str = ""
    trusted_image_registries: str = ""
    rule_overrides: Dict[str, str] = Field(default_factory=dict)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @model_validator(mode="before")
    @classmethod
    def collect_rule_overrides(cls, data):
        if isinstance(data, dict) and "rule_overrides" not in data:
            data["rule_overrides"] = {
                key.upper(): value
                for key, value in os.environ.items()
                if key.upper().startswith(RULE_OVERRIDE_PREFIX)
            }
        return data

    @field_validator("rule_overrides", mode="after")
    @classmethod
    def normalize_override_keys(cls, v):
        return {key.upper(): value for key, value in v.items()}

    @property
    def trusted_registries(self) -> List[str]:
        """Union of both registry settings, comma separated, blanks dropped."""
        registries = []
        for registry_list in (self.trusted_image_registry, self.trusted_image_registries):
            for registry in registry_list.split(","):
                registry = registry.strip()
                if registry and registry not in registries:
                    registries.append(registry)
        return registries

    def is_rule_disabled(self, rule_name: str) -> bool:
        return self.rule_overrides.get(rule_override_env(rule_name)) == RULE_DISABLED_VALUE


def load_config(**kwargs) -> ValidationConfig:
    """Load validation settings from the environment with optional overrides."""
    return ValidationConfig(**kwargs)
