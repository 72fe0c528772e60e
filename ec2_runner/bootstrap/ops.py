"""Core boot script operations.

Declarative operations for runner setup: directories, the pre-runner
script, the runner archive and the runner service.
Each operation is a function returning an Op (string or callable).
"""

from __future__ import annotations

from ..constants import (
    PRE_RUNNER_SCRIPT,
    RUNNER_ARCHITECTURES,
    RUNNER_DOWNLOAD_URL,
)
from .compose import Op

# =============================================================================
# Control
# =============================================================================


def and_then(*cmds: str) -> str:
    """Chain commands with && (all must succeed).

    Example:
        >>> and_then("mkdir actions-runner", "cd actions-runner")
        'mkdir actions-runner && cd actions-runner'
    """
    return " && ".join(cmds)


# =============================================================================
# File Operations
# =============================================================================


def cd(path: str) -> Op:
    """Change into a directory given as a quoted path.

    Example:
        >>> cd("/home/runner/actions-runner")()
        'cd "/home/runner/actions-runner"'
    """
    return lambda: f'cd "{path}"'


def workdir(name: str) -> Op:
    """Create a fresh directory relative to the current one and enter it.

    Example:
        >>> workdir("actions-runner")()
        'mkdir actions-runner && cd actions-runner'
    """
    return lambda: and_then(f"mkdir {name}", f"cd {name}")


def echo_file(content: str, path: str) -> Op:
    """Write content to a file with echo.

    The content is placed inside double quotes unchanged, so shell
    expansion applies when the script runs.

    Example:
        >>> echo_file("apt-get update", "setup.sh")()
        'echo "apt-get update" > setup.sh'
    """
    return lambda: f'echo "{content}" > {path}'


def source(path: str) -> Op:
    return lambda: f"source {path}"


def pre_runner(script: str) -> list[Op]:
    """Write the user's pre-runner commands to disk and source them."""
    return [echo_file(script, PRE_RUNNER_SCRIPT), source(PRE_RUNNER_SCRIPT)]


# =============================================================================
# Runner Installation
# =============================================================================


def detect_arch() -> Op:
    """Export RUNNER_ARCH from ``uname -m``.

    Example:
        >>> detect_arch()()
        'case $(uname -m) in aarch64) ARCH="arm64" ;; amd64|x86_64) ARCH="x64" ;; esac && export RUNNER_ARCH=${ARCH}'
    """

    def generate() -> str:
        cases = " ".join(f'{machine}) ARCH="{arch}" ;;' for machine, arch in RUNNER_ARCHITECTURES.items())
        return and_then(f"case $(uname -m) in {cases} esac", "export RUNNER_ARCH=${ARCH}")

    return generate


def runner_archive(version: str) -> str:
    """Release archive name for the architecture exported by detect_arch()."""
    return f"actions-runner-linux-${{RUNNER_ARCH}}-{version}.tar.gz"


def download_runner(version: str) -> Op:
    """Download the runner release archive into the current directory.

    Example:
        >>> download_runner("2.307.1")()
        'curl -O -L https://github.com/actions/runner/releases/download/v2.307.1/actions-runner-linux-${RUNNER_ARCH}-2.307.1.tar.gz'
    """
    return lambda: f"curl -O -L {RUNNER_DOWNLOAD_URL}/v{version}/{runner_archive(version)}"


def extract_runner(version: str) -> Op:
    return lambda: f"tar xzf ./{runner_archive(version)}"


# =============================================================================
# Runner Service
# =============================================================================


def allow_run_as_root() -> Op:
    return lambda: "export RUNNER_ALLOW_RUNASROOT=1"


def configure_runner(url: str, token: str, label: str) -> Op:
    """Register an ephemeral runner that replaces any runner with its name.

    The token and label are inserted as given. The runner name combines the
    host name with a random suffix.

    Args:
        url: Repository URL the runner registers against.
        token: One-time registration token.
        label: Runner label used to route the job.
    """
    flags = "--replace --ephemeral --unattended"
    return lambda: (
        f"./config.sh --url {url} --token {token} --labels {label} "
        f"--name $(hostname)-$(uuidgen) {flags}"
    )


def svc(action: str) -> Op:
    """Run a runner service action (install, start, stop, uninstall).

    Example:
        >>> svc("install")()
        './svc.sh install'
    """
    return lambda: f"./svc.sh {action}"
