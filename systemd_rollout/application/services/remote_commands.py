"""
Remote Commands

Architectural Intent:
- The complete shell command surface issued against a target host
- One function per remote action, each producing a single shell command
- All interpolated values quoted via shlex.quote() to prevent shell injection
"""

import shlex

UNIT_FILE_DIR = "/etc/systemd/system"
WORKING_DIRECTORY_MODE = "755"


def read_unit_file(service_name: str) -> str:
    return f"cat {shlex.quote(f'{UNIT_FILE_DIR}/{service_name}.service')}"


def directory_exists(path: str) -> str:
    return f"test -d {shlex.quote(path)}"


def force_remove(path: str) -> str:
    return f"rm -rf {shlex.quote(path)}"


def move(src: str, dest: str) -> str:
    return f"mv {shlex.quote(src)} {shlex.quote(dest)}"


def make_directory(path: str) -> str:
    return f"mkdir -p {shlex.quote(path)}"


def set_mode(path: str, mode: str = WORKING_DIRECTORY_MODE) -> str:
    return f"chmod {mode} {shlex.quote(path)}"


def change_owner_recursive(path: str, user: str) -> str:
    # "user:" assigns the user's login group as well
    return f"chown -R {shlex.quote(f'{user}:')} {shlex.quote(path)}"


def service_is_active(service_name: str) -> str:
    return f"systemctl is-active --quiet {shlex.quote(service_name)}"


def stop_service(service_name: str) -> str:
    return f"systemctl stop {shlex.quote(service_name)}"


def start_service(service_name: str) -> str:
    return f"systemctl start {shlex.quote(service_name)}"


def extract_archive(archive_path: str, dest: str) -> str:
    return f"tar -xzf {shlex.quote(archive_path)} -C {shlex.quote(dest)}"


def remove_file(path: str) -> str:
    return f"rm -f {shlex.quote(path)}"


def list_directory(path: str) -> str:
    return f"ls -la {shlex.quote(path)}"


def http_status_probe(url: str) -> str:
    return (
        "curl --write-out '%{http_code}' --output /dev/null --silent "
        f"{shlex.quote(url)}"
    )
