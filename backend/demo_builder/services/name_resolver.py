"""Recover provider-side resource names from the URLs stored on a demo.

Deletion needs the Vercel project name (or id) and the GitHub owner/repo.
URLs are parsed first; the project name is then looked up in a fresh
listing with an ordered list of matchers, first hit wins:

1. ExactMatch         - name equality
2. SubstringMatch     - listing entry contains target or target contains entry
3. SlugHeuristicMatch - strip role and uniqueness suffix, match on the slug,
                        never crossing into a demo with a different suffix

When all three miss, DirectNameFallback hands back the literal target so the
caller can try a name-addressed delete.
"""

import re
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from demo_builder.models import ProjectHandle, ProjectListing
from demo_builder.utils.naming import ROLES


def resolve_deploy_project_name(url: Optional[str], domain: str = "vercel.app") -> Optional[str]:
    """https://<name>.<domain>[/...] -> <name>"""
    if not url:
        return None
    match = re.match(rf"^https?://([^./]+)\.{re.escape(domain)}(?:[/:?#].*)?$", url.strip(), re.IGNORECASE)
    return match.group(1) if match else None


def resolve_repo_coordinates(url: Optional[str], domain: str = "github.com") -> Optional[Tuple[str, str]]:
    """https://<domain>/<owner>/<repo>[.git] -> (owner, repo)"""
    if not url:
        return None
    match = re.match(rf"^https?://(?:www\.)?{re.escape(domain)}/([^/?#]+)/([^/?#]+?)(?:\.git)?/?(?:[?#].*)?$",
                     url.strip(), re.IGNORECASE)
    if not match:
        return None
    return match.group(1), match.group(2)


def _parse_generated(name: str, prefix: str):
    roles = "|".join(ROLES)
    return re.match(
        rf"^(?:segment-)?{re.escape(prefix)}-(?P<slug>.+?)-(?P<role>{roles})"
        rf"(?:-(?P<suffix>\d+-[a-z0-9]+))?(?:-.*)?$",
        name
    )


def split_generated_name(name: str, prefix: str = "demo") -> Optional[Tuple[str, str]]:
    """(slug, role) of a generated name; also understands legacy segment-demo-* names."""
    match = _parse_generated(name, prefix)
    if not match:
        return None
    return match.group("slug"), match.group("role")


def generated_suffix(name: str, prefix: str = "demo") -> Optional[str]:
    """The <milliseconds>-<random> part of a generated name, None for legacy names."""
    match = _parse_generated(name, prefix)
    return match.group("suffix") if match else None


@dataclass
class ProjectMatch:
    project: ProjectHandle
    strategy: str


class ExactMatch:
    strategy = "exact"

    def match(self, target: str, listing: ProjectListing) -> Optional[ProjectHandle]:
        return next((p for p in listing.projects if p.name == target), None)


class SubstringMatch:
    strategy = "substring"

    def match(self, target: str, listing: ProjectListing) -> Optional[ProjectHandle]:
        return next(
            (p for p in listing.projects if p.name and (target in p.name or p.name in target)),
            None
        )


class SlugHeuristicMatch:
    strategy = "slug"

    def __init__(self, prefix: str = "demo"):
        self.prefix = prefix

    def match(self, target: str, listing: ProjectListing) -> Optional[ProjectHandle]:
        parsed = split_generated_name(target, self.prefix)
        if not parsed:
            return None
        slug, role = parsed
        suffix = generated_suffix(target, self.prefix)
        candidates = [
            p for p in listing.projects
            if slug in p.name and not self._other_demo(p.name, suffix)
        ]
        same_role = [p for p in candidates if f"-{role}" in p.name]
        return (same_role or candidates or [None])[0]

    def _other_demo(self, name: str, suffix: Optional[str]) -> bool:
        """Another run of the same customer: generated name with a different suffix."""
        other = generated_suffix(name, self.prefix)
        return bool(suffix and other and other != suffix)


class DirectNameFallback:
    strategy = "direct"

    def match(self, target: str, listing: ProjectListing) -> ProjectHandle:
        return ProjectHandle(id=target, name=target, scope=listing.scope)


MATCHERS: Sequence = (ExactMatch(), SubstringMatch(), SlugHeuristicMatch())


def _first_match(target: str, listing: ProjectListing, matchers: Sequence) -> Optional[ProjectMatch]:
    for matcher in matchers:
        project = matcher.match(target, listing)
        if project is not None:
            logging.info(f"Matched {target} -> {project.name} ({matcher.strategy} match)")
            return ProjectMatch(project=project, strategy=matcher.strategy)
    return None


def find_project_fuzzy(target: str, listing: ProjectListing, matchers: Sequence = MATCHERS) -> Optional[ProjectHandle]:
    found = _first_match(target, listing, matchers)
    return found.project if found else None


def resolve_deletion_target(target: str, listing: ProjectListing, matchers: Sequence = MATCHERS) -> ProjectMatch:
    """Fuzzy match, or the literal name for a name-addressed delete."""
    found = _first_match(target, listing, matchers)
    if found:
        return found
    logging.info(f"Project {target} not found in {len(listing.projects)} listed projects, trying direct deletion by name")
    return ProjectMatch(project=DirectNameFallback().match(target, listing), strategy=DirectNameFallback.strategy)
