from dataclasses import dataclass


@dataclass(frozen=True)
class ServiceDefinition:
    """
    Read-only snapshot of a systemd unit file, taken for one update attempt.
    """
    working_directory: str
    user: str
    bindings: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.working_directory:
            raise ValueError("Working directory cannot be empty")
        if not self.working_directory.startswith("/"):
            raise ValueError(
                f"Working directory must be absolute, got {self.working_directory!r}"
            )
        if not self.user:
            raise ValueError("Service user cannot be empty")

    @property
    def last_path(self) -> str:
        """Location of the single retained rollback generation."""
        return f"{self.working_directory.rstrip('/')}.last"

    @property
    def first_binding(self) -> str:
        if not self.bindings:
            raise ValueError("Service definition has no HTTP bindings")
        return self.bindings[0]
