import os
import subprocess
import logging
from typing import Dict, List, Optional, Sequence

from demo_builder.errors import CommandError

GIT_AUTHOR = ("Demo Builder", "demo-builder@users.noreply.github.com")


def _redact(text: str, secrets: Sequence[str]) -> str:
    for secret in secrets:
        if secret:
            text = text.replace(secret, "***")
    return text


def run_command(args: List[str], cwd: str, env: Optional[Dict[str, str]] = None,
                secrets: Sequence[str] = ()) -> str:
    """Run a process to completion and return stdout. Raises CommandError on non-zero exit."""
    display = _redact(" ".join(args), secrets)
    logging.info(f"Running: {display}")
    try:
        result = subprocess.run(
            args,
            cwd=cwd,
            env={**os.environ, **env} if env else None,
            capture_output=True,
            text=True
        )
    except OSError as e:
        raise CommandError(f"Could not start {args[0]}: {e}", command=display)

    if result.returncode != 0:
        stderr = _redact(result.stderr or "", secrets)
        logging.error(f"Command failed (exit code {result.returncode}): {display}")
        logging.error(f"Error: {stderr[:500]}")
        raise CommandError(f"Command failed: {display} - {stderr.strip()[:500]}", command=display, output=stderr)
    return result.stdout or ""


def authenticated_remote(repo_url: str, token: str) -> str:
    """https://github.com/o/r -> https://x-access-token:<token>@github.com/o/r.git"""
    remote = repo_url if repo_url.endswith('.git') else f"{repo_url}.git"
    return remote.replace('https://', f'https://x-access-token:{token}@', 1)


def init_and_push(local_dir: str, repo_url: str, token: str,
                  message: str = "Initial commit - demo generated") -> None:
    """Commit everything under local_dir and push it to main on repo_url."""
    name, email = GIT_AUTHOR
    commands = [
        ['git', 'init'],
        ['git', 'add', '.'],
        ['git', '-c', f'user.name={name}', '-c', f'user.email={email}', 'commit', '-m', message],
        ['git', 'branch', '-M', 'main'],
        ['git', 'remote', 'add', 'origin', authenticated_remote(repo_url, token)],
        ['git', 'push', '-u', 'origin', 'main'],
    ]
    for command in commands:
        run_command(command, cwd=local_dir, secrets=[token])
    logging.info(f"Pushed {local_dir} to {repo_url}")

