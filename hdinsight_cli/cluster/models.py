"""Cluster descriptors as reported by the management service."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ClusterState(str, Enum):
    """Lifecycle state of a remote cluster."""

    REQUESTED = "Requested"
    REGISTERING = "Registering"
    OPERATIONAL = "Operational"
    RUNNING = "Running"
    ERROR = "Error"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: Any) -> "ClusterState":
        """Case-insensitive lookup; anything unrecognised is ``UNKNOWN``."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for state in cls:
            if state.value.lower() == text:
                return state
        return cls.UNKNOWN


#: States after which a freshly created cluster will not progress further.
TERMINAL_STATES = frozenset(
    {ClusterState.OPERATIONAL, ClusterState.RUNNING, ClusterState.ERROR}
)


class ClusterDescriptor(BaseModel):
    """A cluster as listed by the service.

    Only the service produces these; the workflow re-fetches rather than
    mutating them.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(alias="Name")
    location: str = Field(default="", alias="Location")
    state: ClusterState = Field(default=ClusterState.UNKNOWN, alias="State")
    error: Optional[str] = Field(default=None, alias="Error")

    # -- informational ------------------------------------------------------
    created_date: Optional[str] = Field(default=None, alias="CreatedDate")
    node_count: Optional[int] = Field(default=None, alias="NodeCount")
    connection_url: Optional[str] = Field(default=None, alias="ConnectionUrl")
    user_name: Optional[str] = Field(default=None, alias="UserName")
    version: Optional[str] = Field(default=None, alias="Version")

    @field_validator("state", mode="before")
    @classmethod
    def _parse_state(cls, value: Any) -> ClusterState:
        return ClusterState.parse(value)

    @property
    def has_error(self) -> bool:
        return bool(self.error and self.error.strip())

    @property
    def is_terminal(self) -> bool:
        """True once provisioning has stopped progressing."""
        return self.state in TERMINAL_STATES or self.has_error

    def matches(self, name: str) -> bool:
        """Case-insensitive name comparison."""
        return self.name.lower() == (name or "").lower()
