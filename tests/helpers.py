"""Principal, resource and metrics stand-ins shared by tests."""

from dataclasses import dataclass


@dataclass
class User:
    """Principal used across tests."""

    user_id: str
    role: str = "Guest"


@dataclass
class Project:
    """Resource used across tests."""

    project_id: str = "p-1"
    owner: str = ""


class RecordingMetrics:
    """Metrics sink that keeps every observation."""

    def __init__(self):
        self.observations: list[tuple[str, str, float]] = []

    def record_observation(self, policy: str, rule: str, duration_seconds: float) -> None:
        self.observations.append((policy, rule, duration_seconds))
