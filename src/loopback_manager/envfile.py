import logging
from pathlib import Path

from .errors import IOFailure

log = logging.getLogger(__name__)

ENV_FILENAME = ".env"
ENV_VAR = "LOOPBACK_IP"


def _line_ending(line: str) -> str:
    return line[len(line.splitlines()[0]):] if line else ""


def upsert_line(content: str, ip: str, var: str = ENV_VAR) -> str:
    """Replace every ``VAR=`` line in place, or prepend one when none exists."""
    prefix = f"{var}="
    entry = f"{prefix}{ip}"
    lines = content.splitlines(keepends=True)
    found = False
    for idx, line in enumerate(lines):
        if line.startswith(prefix):
            lines[idx] = entry + _line_ending(line)
            found = True
    if found:
        return "".join(lines)
    if not lines:
        return entry + "\n"
    newline = "\r\n" if lines[0].endswith("\r\n") else "\n"
    return entry + newline + content


def upsert_env_var(repo_path: Path, ip: str, var: str = ENV_VAR) -> Path:
    env_path = Path(repo_path) / ENV_FILENAME
    # bytes I/O keeps CRLF endings; surrogateescape keeps bytes that are not UTF-8
    try:
        raw = env_path.read_bytes() if env_path.exists() else b""
        content = raw.decode("utf-8", errors="surrogateescape")
        env_path.write_bytes(upsert_line(content, ip, var).encode("utf-8", errors="surrogateescape"))
    except OSError as exc:
        raise IOFailure(env_path, f"could not update env file ({exc.strerror or exc})") from exc
    except UnicodeError as exc:
        raise IOFailure(env_path, f"could not update env file ({exc})") from exc
    log.info("Set %s=%s in %s", var, ip, env_path)
    return env_path
