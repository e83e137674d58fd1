"""Rolling, rollback-capable updates of systemd services over SSH."""

__version__ = "0.1.0"
