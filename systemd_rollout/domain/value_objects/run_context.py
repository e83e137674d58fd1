from dataclasses import dataclass


@dataclass(frozen=True)
class RunContext:
    """
    Identifies one run of the rollout (e.g. a CI run number and attempt).
    Used to derive staging paths that never collide across runs or retries.
    """
    run_number: str
    run_attempt: str = "1"

    def __post_init__(self):
        if not self.run_number:
            raise ValueError("Run number cannot be empty")
        if not self.run_attempt:
            raise ValueError("Run attempt cannot be empty")

    def staging_path(self, service_name: str) -> str:
        return f"/tmp/{service_name}.{self.run_number}.{self.run_attempt}"

    def __str__(self):
        return f"{self.run_number}.{self.run_attempt}"
