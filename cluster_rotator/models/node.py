"""Data models for cluster nodes."""

import re

from pydantic import BaseModel, ConfigDict, field_validator

MASTER = "master"
AGENT = "agent"
ROLES = [MASTER, AGENT]


class Node(BaseModel):
    """A cluster node as reported by a single inventory query."""

    model_config = ConfigDict(frozen=True)

    name: str
    role: str  # master or agent
    zone: str | None = None
    instance_id: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate node name follows DNS naming conventions."""
        if not v:
            raise ValueError("name cannot be empty")
        if len(v) > 253:
            raise ValueError("name cannot exceed 253 characters")
        # RFC 1123 hostname validation
        hostname_pattern = re.compile(
            r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$", re.IGNORECASE
        )
        if not hostname_pattern.match(v):
            raise ValueError(
                f"name '{v}' must contain only alphanumeric characters, "
                "hyphens, and dots, and cannot start or end with a hyphen"
            )
        return v

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        """Validate role is either master or agent."""
        if v not in ROLES:
            raise ValueError(f"role must be one of {ROLES}, got '{v}'")
        return v

    @property
    def is_master(self) -> bool:
        return self.role == MASTER

    @property
    def instance_ref(self) -> str:
        """Reference used when talking to the cloud provider."""
        return self.instance_id or self.name

    def __str__(self) -> str:
        if self.zone:
            return f"{self.name} ({self.role}, {self.zone})"
        return f"{self.name} ({self.role})"
