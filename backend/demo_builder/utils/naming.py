"""Collision-resistant resource names for demo projects and repositories.

Format: ``demo-<slug>-<role>-<milliseconds>-<random>``

The frontend, backend and repository of one demo share the same
``<milliseconds>-<random>`` suffix and differ only in the role token.
"""

import re
import secrets
import string
import threading
import time
from typing import Optional

ROLES = ("frontend", "backend", "repo")
RANDOM_LENGTH = 6
BASE36 = string.digits + string.ascii_lowercase

_clock_lock = threading.Lock()
_last_millis = 0


def slugify(label: str, max_length: int = 48) -> str:
    """Lowercase, hyphen-delimited, alphanumeric only."""
    slug = label.strip().lower()
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    if max_length and len(slug) > max_length:
        slug = slug[:max_length].rstrip("-")
    return slug or "demo"


def _monotonic_millis() -> int:
    """Epoch milliseconds, strictly increasing within this process."""
    global _last_millis
    with _clock_lock:
        now = int(time.time() * 1000)
        if now <= _last_millis:
            now = _last_millis + 1
        _last_millis = now
        return now


def random_token(length: int = RANDOM_LENGTH) -> str:
    return "".join(secrets.choice(BASE36) for _ in range(length))


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36[remainder])
    return "".join(reversed(digits))


def new_suffix() -> str:
    """One uniqueness suffix per provisioning run."""
    return f"{_monotonic_millis()}-{random_token()}"


def generate(label: str, role: str, suffix: Optional[str] = None,
             prefix: str = "demo", max_slug_length: int = 48) -> str:
    """Build a resource name. No check against the provider is made."""
    if role not in ROLES:
        raise ValueError(f"Unknown resource role: {role}")
    return f"{prefix}-{slugify(label, max_slug_length)}-{role}-{suffix or new_suffix()}"


def placeholder_url(resource_name: str, domain: str) -> str:
    """Non-functional deploy-host URL used when a deployment step fails."""
    return f"https://{resource_name}-{to_base36(_monotonic_millis())}.{domain}"
