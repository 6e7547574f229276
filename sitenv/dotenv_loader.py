"""
Environment snapshot loading.
Builds the key/value mapping a Resolver reads from .env-style files and the
process environment, without mutating os.environ.
"""

import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from dotenv import dotenv_values

from sitenv.logging_utils import get_logger


logger = get_logger("dotenv")

ENV_KEY = "APP_ENV"
DEFAULT_ENV = "dev"
TEST_ENVS = ("test",)


def get_project_path() -> str:
    """Directory holding the env files; the current working directory."""
    return os.getcwd()


def _read(path: Path) -> Dict[str, str]:
    # Keys declared without "=" parse as None and are skipped
    return {key: value for key, value in dotenv_values(path).items() if value is not None}


def load_environment(
    project_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Build the environment snapshot for a project.

    When APP_ENV is already defined nothing is read. Otherwise .env (or
    .env.dist) is loaded together with its .local and per-environment
    variants; failing that, .env.dev is loaded and APP_ENV defaults to
    "dev". Variables already in ``environ`` always win over file values,
    and later files override earlier ones.

    Args:
        project_path: Directory containing the env files (default: cwd)
        environ: Real environment variables (default: os.environ)

    Returns:
        A new dict with file values overlaid by the real environment
    """
    environ = os.environ if environ is None else environ
    snapshot = dict(environ)
    if ENV_KEY in environ:
        return snapshot

    root = Path(project_path if project_path is not None else get_project_path())
    loaded: Dict[str, str] = {}
    files: List[Path] = []

    if (root / ".env").is_file() or (root / ".env.dist").is_file():
        files = _load_env_chain(root / ".env", loaded, environ)
    elif (root / ".env.dev").is_file():
        files = [root / ".env.dev"]
        _overlay(loaded, _read(root / ".env.dev"), environ)
        # APP_ENV is fixed before the file is read; the file cannot change it
        loaded[ENV_KEY] = DEFAULT_ENV
    else:
        logger.debug("No env file found", extra={"project_path": str(root)})

    if files:
        logger.info(
            "Loaded env files",
            extra={"files": [str(path) for path in files], "app_env": loaded.get(ENV_KEY)},
        )

    for key, value in loaded.items():
        if key not in environ:
            snapshot[key] = value
    return snapshot


def _load_env_chain(path: Path, loaded: Dict[str, str], environ: Mapping[str, str]) -> List[Path]:
    """Load .env, .env.local, .env.<env> and .env.<env>.local in that order."""
    files: List[Path] = []

    def load(candidate: Path):
        files.append(candidate)
        _overlay(loaded, _read(candidate), environ)

    dist = path.with_name(path.name + ".dist")
    load(path if path.is_file() or not dist.is_file() else dist)

    env = loaded.setdefault(ENV_KEY, DEFAULT_ENV)

    local = path.with_name(path.name + ".local")
    if env not in TEST_ENVS and local.is_file():
        load(local)
        env = loaded.get(ENV_KEY, env)

    if env == "local":
        return files

    for candidate in (path.with_name(f"{path.name}.{env}"), path.with_name(f"{path.name}.{env}.local")):
        if candidate.is_file():
            load(candidate)
    return files


def _overlay(loaded: Dict[str, str], values: Mapping[str, str], environ: Mapping[str, str]):
    for key, value in values.items():
        if key not in environ:
            loaded[key] = value
