"""Rotation configuration."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from cluster_rotator.exceptions import ConfigurationError

DEFAULT_TIMEOUT_BUDGET = 60


class RotationConfig(BaseModel):
    """Settings for a rotation run and the Kubernetes collaborator."""

    timeout_budget: int = Field(default=DEFAULT_TIMEOUT_BUDGET, ge=1)
    backoff_seconds: float = Field(default=1.0, ge=0)
    terminate_command: str | None = None
    backup_command: str | None = None
    backup_before_run: bool = False
    skip_agents: bool = False
    command_timeout: int = Field(default=300, ge=1)
    zone_label: str = "topology.kubernetes.io/zone"
    unzoned_name: str = "unzoned"
    leader_lease_namespace: str = "kube-system"
    leader_lease_name: str = "kube-controller-manager"

    @field_validator("terminate_command", "backup_command")
    @classmethod
    def validate_command(cls, v: str | None) -> str | None:
        """Validate commands are not blank."""
        if v is not None and not v.strip():
            raise ValueError("command cannot be blank")
        return v

    @field_validator("terminate_command")
    @classmethod
    def validate_terminate_placeholders(cls, v: str | None) -> str | None:
        """Validate the terminate template only uses known placeholders."""
        if v is None:
            return v
        try:
            v.format(instance_id="i", node="n", zone="z")
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(
                f"terminate_command may only use {{instance_id}}, {{node}} and {{zone}}: {e}"
            )
        return v

    @field_validator("zone_label", "unzoned_name", "leader_lease_namespace", "leader_lease_name")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("value cannot be empty")
        return v

    def save(self, path: str | Path) -> None:
        """Save configuration to YAML file."""
        with open(path, "w") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False)

    @classmethod
    def load(cls, path: str | Path) -> "RotationConfig":
        """Load configuration from YAML file.

        Raises:
            ConfigurationError: If the file is missing or invalid
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {path}",
                f"Expected location: {path.absolute()}",
            )

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {path}", str(e))

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping: {path}",
                f"Got {type(data).__name__}",
            )

        try:
            return cls(**data)
        except ValidationError as e:
            problems = "\n".join(
                f"  - {'.'.join(str(x) for x in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigurationError(f"Invalid configuration in {path}", problems)
