"""Start/stop helper for the packaged stack (API service + edge router containers)."""

import argparse
import shutil
import socket
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).parent.resolve()
ENV_FILE = ROOT / ".env"
ENV_EXAMPLE = ROOT / ".env.example"
COMPOSE_FILE = ROOT / "docker-compose.yml"

DEFAULT_EDGE_HOST_PORT = 8080


def prompt_yes_no(question: str, default: bool = True) -> bool:
    """Console prompt that returns a boolean while handling default answers."""
    default_text = "[Y/n]" if default else "[y/N]"
    while True:
        choice = input(f"{question} {default_text} ").strip().lower()
        if not choice:
            return default
        if choice in ("y", "yes"):
            return True
        if choice in ("n", "no"):
            return False
        print("Please respond with 'y' or 'n'.")


def run(cmd, check=True, capture_output=False):
    """Wrapper around subprocess.run that echoes the command for transparency."""
    print(f"> {' '.join(cmd)}")
    return subprocess.run(cmd, check=check, capture_output=capture_output, text=True)


def ensure_env_file():
    """Create a .env from .env.example if missing so compose picks up the port mapping."""
    if ENV_FILE.exists():
        return
    if ENV_EXAMPLE.exists() and prompt_yes_no("No .env found. Copy from .env.example?", default=True):
        ENV_FILE.write_text(ENV_EXAMPLE.read_text(encoding="utf-8"), encoding="utf-8")
        print("Created .env from .env.example")
    else:
        print(f"No .env present. Using defaults (router published on port {DEFAULT_EDGE_HOST_PORT}).")


def parse_env():
    """Parse key/value pairs from the .env file into a dictionary."""
    data = {}
    if not ENV_FILE.exists():
        return data
    for line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        data[key.strip()] = value.strip()
    return data


def update_env_value(env: dict, key: str, value: str):
    """Set `key=value` in .env, replacing an existing line or appending a new one."""
    lines = ENV_FILE.read_text(encoding="utf-8").splitlines() if ENV_FILE.exists() else []
    new_lines = []
    replaced = False
    for line in lines:
        if line.startswith(f"{key}="):
            new_lines.append(f"{key}={value}")
            replaced = True
        else:
            new_lines.append(line)
    if not replaced:
        new_lines.append(f"{key}={value}")
    ENV_FILE.write_text("\n".join(new_lines) + "\n", encoding="utf-8")
    env[key] = value


def port_available(port: int) -> bool:
    """Check whether a TCP port can be bound (used before publishing the router)."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            s.bind(("", port))
            return True
        except OSError:
            return False


def find_free_port(start_port: int, limit: int = 20) -> int | None:
    """Find the first available port in a consecutive range starting at start_port."""
    for p in range(start_port, start_port + limit):
        if port_available(p):
            return p
    return None


def edge_host_port(env: dict) -> int:
    """Read EDGE_HOST_PORT from the parsed env, falling back to the default."""
    try:
        return int(env.get("EDGE_HOST_PORT", DEFAULT_EDGE_HOST_PORT))
    except ValueError:
        print(f"Invalid EDGE_HOST_PORT; using {DEFAULT_EDGE_HOST_PORT}.")
        return DEFAULT_EDGE_HOST_PORT


def ensure_edge_port(env: dict) -> int | None:
    """Make sure the host port published for the router is free.

    On a collision the next free port is offered and written back to .env so
    docker compose publishes the router there. Returns None when unresolved.
    """
    desired_port = edge_host_port(env)
    if port_available(desired_port):
        return desired_port

    alt = find_free_port(desired_port + 1, limit=20)
    if not alt:
        print(f"Port {desired_port} is in use and no free port was found in the next 20 ports.")
        return None
    if not prompt_yes_no(f"Port {desired_port} is in use. Use {alt} instead?", default=True):
        print("Port conflict unresolved; not starting the stack.")
        return None
    update_env_value(env, "EDGE_HOST_PORT", str(alt))
    return alt


def docker_available():
    """Return True if Docker CLI is on PATH (daemon may still be stopped)."""
    return shutil.which("docker") is not None


def compose_command(*args: str) -> list[str]:
    return ["docker", "compose", "-f", str(COMPOSE_FILE), *args]


def start():
    """Build and start the API service and edge router containers."""
    if not docker_available():
        raise RuntimeError("Docker CLI not found on PATH; install Docker to run the packaged stack.")
    ensure_env_file()
    env = parse_env()
    port = ensure_edge_port(env)
    if port is None:
        return
    run(compose_command("up", "-d", "--build"))
    print(f"Stack is up. Open http://localhost:{port}")


def stop():
    """Stop and remove the stack's containers."""
    if not docker_available():
        raise RuntimeError("Docker CLI not found on PATH; nothing to stop.")
    run(compose_command("down"))


def main(argv=None):
    """Primary orchestrator for the launcher workflow."""
    parser = argparse.ArgumentParser(description="Start or stop the packaged stack.")
    parser.add_argument("command", choices=["start", "stop"])
    args = parser.parse_args(argv)

    if args.command == "start":
        start()
    else:
        stop()


def cli():
    """Console-script entrypoint with the launcher's error reporting."""
    try:
        main()
    except KeyboardInterrupt:
        print("\nShutting down.")
    except Exception as exc:
        print(f"Error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    cli()
