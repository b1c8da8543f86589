from __future__ import annotations

import os
import re

import pytest

from demo_builder.errors import GenerationError, ValidationError
from demo_builder.models import DemoRequest
from demo_builder.services.provisioning_service import ProvisioningService
from demo_builder.services.record_store import RecordStore
from conftest import StubResponse, StubSession, provider_calls

DEPLOY_URL = re.compile(r"^https://[^./]+\.vercel\.app$")
REPO_URL = re.compile(r"^https://github\.com/[^/]+/[^/]+$")


def make_request(**overrides) -> DemoRequest:
    fields = dict(customer_name="Acme Corp", write_key="wk_123", profile_token="pt_123",
                  unify_space_id="spa_123", github_token="ghp_123", user_id="user-1")
    fields.update(overrides)
    return DemoRequest(**fields)


def test_provision_happy_path(provisioning, record_store, github, settings):
    result = provisioning.provision(make_request())

    assert DEPLOY_URL.match(result.frontend_url)
    assert DEPLOY_URL.match(result.backend_url)
    assert REPO_URL.match(result.repo_url)
    assert result.warnings == []
    assert github.tokens == ["ghp_123"]
    assert github.pushed_files == ["backend", "frontend"]

    stored = record_store.rows[result.demo_id]
    assert stored.user_id == "user-1"
    assert (stored.frontend_url, stored.backend_url, stored.github_repo_url) == \
        (result.frontend_url, result.backend_url, result.repo_url)


def test_resource_names_share_one_suffix(provisioning, calls):
    provisioning.provision(make_request())
    created = [c[1] for c in calls if c[0] in ("vercel.create", "github.create")]
    frontend, backend, repo = (next(n for n in created if f"-{role}-" in n) for role in ("frontend", "backend", "repo"))
    assert "-acme-corp-frontend-" in frontend
    assert frontend.replace("-frontend-", "-backend-") == backend
    assert frontend.replace("-frontend-", "-repo-") == repo


def test_deploy_failures_fall_back_to_placeholders(provisioning, vercel, record_store):
    vercel.fail_deploy = {"frontend", "backend"}
    result = provisioning.provision(make_request())

    assert DEPLOY_URL.match(result.frontend_url) and "-frontend-" in result.frontend_url
    assert DEPLOY_URL.match(result.backend_url) and "-backend-" in result.backend_url
    assert len(result.warnings) == 2
    assert record_store.rows[result.demo_id].frontend_url == result.frontend_url


def test_frontend_failure_does_not_stop_backend(provisioning, vercel, calls):
    vercel.fail_deploy = {"frontend"}
    result = provisioning.provision(make_request())
    assert len(provider_calls(calls, "vercel.deploy")) == 2
    assert result.backend_url.startswith("https://demo-acme-corp-backend-")
    assert len(result.warnings) == 1


def test_repository_failure_uses_placeholder(provisioning, github, calls, settings):
    github.fail_create = True
    result = provisioning.provision(make_request())
    assert result.repo_url == settings.placeholder_repo_url
    assert provider_calls(calls, "github.push") == []
    assert len(provider_calls(calls, "vercel.deploy")) == 2
    assert any("GitHub" in w for w in result.warnings)


def test_without_deploy_credentials_urls_are_placeholders(settings, llm, record_store, github, calls):
    service = ProvisioningService(settings, llm, record_store, github, None)
    result = service.provision(make_request())
    assert DEPLOY_URL.match(result.frontend_url)
    assert DEPLOY_URL.match(result.backend_url)
    assert provider_calls(calls, "vercel.") == []
    assert len(result.warnings) == 2


def test_generation_failure_is_fatal(provisioning, llm, record_store, calls, settings):
    llm.fail = True
    with pytest.raises(GenerationError):
        provisioning.provision(make_request())
    assert provider_calls(calls) == []
    assert record_store.rows == {}
    assert os.listdir(settings.workspace_root) == []


def test_workspace_removed_after_success(provisioning, settings):
    provisioning.provision(make_request())
    assert os.listdir(settings.workspace_root) == []


def test_store_failure_becomes_warning(provisioning, record_store):
    record_store.fail_insert = True
    result = provisioning.provision(make_request())
    assert result.demo_id is None
    assert DEPLOY_URL.match(result.frontend_url)
    assert any("not stored" in w for w in result.warnings)


@pytest.mark.parametrize("field, label", [
    ("customer_name", "customerName"),
    ("write_key", "writeKey"),
    ("github_token", "githubToken"),
    ("user_id", "supabaseUserId"),
])
def test_validation_happens_before_any_external_call(provisioning, calls, field, label):
    with pytest.raises(ValidationError) as info:
        provisioning.provision(make_request(**{field: ""}))
    assert label in str(info.value)
    assert calls == []


def test_inspiration_repository_feeds_generation(provisioning, llm, calls):
    provisioning.provision(make_request(inspiration_repo="octo/shop"))
    assert ("github.context", "octo/shop") in calls
    assert llm.inspirations == ["Repository: octo/shop"]


def test_list_demos_requires_user(provisioning):
    with pytest.raises(ValidationError):
        provisioning.list_demos("")


def test_list_repositories(provisioning, github):
    assert provisioning.list_repositories("ghp_123")[0]["full_name"] == "octo/site"
    with pytest.raises(ValidationError):
        provisioning.list_repositories(None)


def test_store_without_response_body_still_returns_urls(settings, llm, github, vercel):
    store = RecordStore("https://db.supabase.co", "service-key", session=StubSession(StubResponse(201)))
    result = ProvisioningService(settings, llm, store, github, vercel).provision(make_request())
    assert result.demo_id is None
    assert DEPLOY_URL.match(result.frontend_url)
    assert REPO_URL.match(result.repo_url)
