"""Resolution of the version string reported by the service."""

from __future__ import annotations

import functools
import os
import subprocess
from pathlib import Path

ENV_VAR = "GOVEE_CI_TAG"
TAG_FILE = ".tag"

_GIT_COMMAND = (
    "git",
    "-c",
    "core.abbrev=8",
    "show",
    "-s",
    "--format=%cd-%h",
    "--date=format:%Y.%m.%d",
)


def resolve_ci_tag(directory: str | os.PathLike[str] | None = None) -> str:
    """Work out the version tag.

    The ``GOVEE_CI_TAG`` environment variable wins; otherwise a ``.tag``
    file in *directory* is used; otherwise the date and abbreviated hash
    of the current git commit.  An empty string is returned when none of
    these can be determined.
    """
    env = os.environ.get(ENV_VAR)
    if env is not None:
        return env.strip()

    base = Path(directory) if directory is not None else Path.cwd()
    try:
        raw = (base / TAG_FILE).read_bytes()
    except OSError:
        pass
    else:
        try:
            return raw.decode("utf-8").strip()
        except UnicodeDecodeError:
            return ""

    try:
        result = subprocess.run(
            list(_GIT_COMMAND),
            cwd=base,
            capture_output=True,
            check=False,
        )
    except OSError:
        return ""
    return result.stdout.decode("utf-8", errors="replace").strip()


@functools.lru_cache(maxsize=None)
def govee_version() -> str:
    """Return the version of this service, resolved once and cached."""
    return resolve_ci_tag(Path(__file__).resolve().parent.parent)