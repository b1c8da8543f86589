from __future__ import annotations

import re

import pytest

from demo_builder.utils import naming

NAME_PATTERN = re.compile(r"^demo-[a-z0-9-]+-(frontend|backend|repo)-\d+-[a-z0-9]{6}$")


def test_slugify_lowercases_and_collapses_separators():
    assert naming.slugify("  Acme Corp!! & Sons ") == "acme-corp-sons"


def test_slugify_falls_back_when_nothing_is_left():
    assert naming.slugify("!!!") == "demo"


def test_slugify_truncates_without_trailing_hyphen():
    slug = naming.slugify("a" * 10 + " " + "b" * 10, max_length=11)
    assert slug == "a" * 10


@pytest.mark.parametrize("role", naming.ROLES)
def test_generate_matches_format(role):
    name = naming.generate("Acme Corp", role)
    assert NAME_PATTERN.match(name)
    assert f"-acme-corp-{role}-" in name


def test_generate_rejects_unknown_role():
    with pytest.raises(ValueError):
        naming.generate("Acme", "database")


def test_consecutive_names_differ():
    names = {naming.generate("Acme Corp", "frontend") for _ in range(50)}
    assert len(names) == 50


def test_shared_suffix_only_changes_role():
    suffix = naming.new_suffix()
    frontend = naming.generate("Acme Corp", "frontend", suffix)
    backend = naming.generate("Acme Corp", "backend", suffix)
    assert frontend.replace("-frontend-", "-backend-") == backend
    assert frontend.endswith(suffix)


def test_suffix_clock_is_monotonic():
    first = int(naming.new_suffix().split("-")[0])
    second = int(naming.new_suffix().split("-")[0])
    assert second > first


def test_to_base36():
    assert naming.to_base36(0) == "0"
    assert naming.to_base36(35) == "z"
    assert naming.to_base36(36) == "10"


def test_placeholder_url_keeps_resource_name():
    url = naming.placeholder_url("demo-acme-frontend-1-abcdef", "vercel.app")
    assert re.match(r"^https://demo-acme-frontend-1-abcdef-[0-9a-z]+\.vercel\.app$", url)
