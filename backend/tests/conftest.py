from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from demo_builder.config import Settings
from demo_builder.errors import (
    GenerationError, NotFoundError, PersistenceError, ProviderNotFoundError,
    ProviderTransientError, ProviderUnknownError
)
from demo_builder.models import DemoRecord, ProjectHandle, ProjectListing, RepoHandle
from demo_builder.services.deprovisioning_service import DeprovisioningService
from demo_builder.services.provisioning_service import ProvisioningService


class FakeRecordStore:
    def __init__(self, calls: List[tuple]):
        self.calls = calls
        self.rows: Dict[str, DemoRecord] = {}
        self.fail_insert = False
        self.fail_delete = False

    def add(self, **fields) -> DemoRecord:
        record = DemoRecord(
            user_id=fields.pop("user_id", "user-1"),
            customer_name=fields.pop("customer_name", "Acme Corp"),
            segment_write_key="wk",
            segment_profile_token="pt",
            segment_unify_space_id="space",
            **fields
        )
        record.id = record.id or str(uuid.uuid4())
        record.created_at = datetime.now(timezone.utc).isoformat()
        self.rows[record.id] = record
        return record

    def insert(self, record: DemoRecord) -> DemoRecord:
        self.calls.append(("store.insert", record.customer_name))
        if self.fail_insert:
            raise PersistenceError("insert failed")
        record.id = str(uuid.uuid4())
        record.created_at = datetime.now(timezone.utc).isoformat()
        self.rows[record.id] = record
        return record

    def list_by_owner(self, user_id: str) -> List[DemoRecord]:
        self.calls.append(("store.list", user_id))
        return [r for r in self.rows.values() if r.user_id == user_id]

    def get(self, demo_id: str) -> DemoRecord:
        self.calls.append(("store.get", demo_id))
        if demo_id not in self.rows:
            raise NotFoundError(f"Demo not found: {demo_id}")
        return self.rows[demo_id]

    def delete(self, demo_id: str) -> None:
        self.calls.append(("store.delete", demo_id))
        if self.fail_delete:
            raise PersistenceError("delete failed")
        self.rows.pop(demo_id, None)


class FakeVercelClient:
    team_id = None

    def __init__(self, calls: List[tuple], domain: str = "vercel.app"):
        self.calls = calls
        self.domain = domain
        self.projects: List[ProjectHandle] = []
        self.fail_deploy: set = set()
        self.fail_delete: set = set()

    def list_projects(self) -> ProjectListing:
        self.calls.append(("vercel.list",))
        return ProjectListing(scope="personal", projects=list(self.projects))

    def create_project(self, name: str, kind: str) -> ProjectHandle:
        self.calls.append(("vercel.create", name))
        project = ProjectHandle(id=f"prj_{len(self.projects) + 1}", name=name)
        self.projects.append(project)
        return project

    def deploy_directory(self, project: ProjectHandle, directory: str, kind: str) -> str:
        self.calls.append(("vercel.deploy", project.name))
        if kind in self.fail_deploy:
            raise ProviderTransientError("vercel unavailable", provider="vercel", operation="deploy", status=503)
        assert Path(directory, "package.json").exists()
        return f"https://{project.name}.{self.domain}"

    def delete_project(self, id_or_name: str, scope: str = "personal") -> None:
        self.calls.append(("vercel.delete", id_or_name))
        if id_or_name in self.fail_delete:
            raise ProviderUnknownError("boom", provider="vercel", operation="delete", status=409)
        for project in self.projects:
            if id_or_name in (project.id, project.name):
                self.projects.remove(project)
                return
        raise ProviderNotFoundError("missing", provider="vercel", operation="delete", status=404)


class FakeGitHubClient:
    def __init__(self, calls: List[tuple]):
        self.calls = calls
        self.tokens: List[str] = []
        self.fail_create = False
        self.fail_delete = False
        self.pushed_files: List[str] = []

    def __call__(self, token: str) -> "FakeGitHubClient":
        self.tokens.append(token)
        return self

    def create_repository(self, name: str, private: bool = True, description: str = "") -> RepoHandle:
        self.calls.append(("github.create", name))
        if self.fail_create:
            raise ProviderTransientError("github down", provider="github", operation="create", status=502)
        return RepoHandle(owner="octo", name=name, html_url=f"https://github.com/octo/{name}")

    def push_directory(self, repo: RepoHandle, local_dir: str) -> None:
        self.calls.append(("github.push", repo.name))
        self.pushed_files = sorted(p.name for p in Path(local_dir).iterdir())

    def delete_repository(self, owner: str, name: str) -> None:
        self.calls.append(("github.delete", f"{owner}/{name}"))
        if self.fail_delete:
            raise ProviderTransientError("github down", provider="github", operation="delete", status=500)

    def list_repositories(self) -> List[dict]:
        self.calls.append(("github.list",))
        return [{"id": 1, "name": "site", "full_name": "octo/site"}]

    def get_repository_context(self, full_name: str) -> str:
        self.calls.append(("github.context", full_name))
        return f"Repository: {full_name}"


class FakeLLMService:
    def __init__(self, calls: List[tuple]):
        self.calls = calls
        self.fail = False
        self.inspirations: List[str] = []

    def generate_frontend_code(self, customer_name, logo_url=None, write_key=None, inspiration=""):
        self.calls.append(("llm.frontend", customer_name))
        self.inspirations.append(inspiration)
        if self.fail:
            raise GenerationError("OPENAI_API_KEY environment variable is not set")
        return "// frontend"

    def generate_backend_code(self, profile_token, unify_space_id, inspiration=""):
        self.calls.append(("llm.backend",))
        return "// backend"


def provider_calls(calls: List[tuple], prefix: Optional[str] = None) -> List[tuple]:
    prefixes = (prefix,) if prefix else ("vercel.", "github.")
    return [c for c in calls if c[0].startswith(prefixes)]


@pytest.fixture()
def calls() -> List[tuple]:
    return []


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(vercel_token="test-token", workspace_root=str(tmp_path / "work"))


@pytest.fixture()
def record_store(calls) -> FakeRecordStore:
    return FakeRecordStore(calls)


@pytest.fixture()
def vercel(calls) -> FakeVercelClient:
    return FakeVercelClient(calls)


@pytest.fixture()
def github(calls) -> FakeGitHubClient:
    return FakeGitHubClient(calls)


@pytest.fixture()
def llm(calls) -> FakeLLMService:
    return FakeLLMService(calls)


@pytest.fixture()
def provisioning(settings, llm, record_store, github, vercel) -> ProvisioningService:
    return ProvisioningService(settings, llm, record_store, github, vercel)


@pytest.fixture()
def deprovisioning(settings, record_store, github, vercel) -> DeprovisioningService:
    return DeprovisioningService(settings, record_store, github, vercel)


class StubResponse:
    def __init__(self, status_code: int = 200, payload=None, text: Optional[str] = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is None else str(payload))

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class StubSession:
    """Answers requests from a queue and records what was asked."""

    def __init__(self, *responses: StubResponse):
        self.responses = list(responses)
        self.requests: List[dict] = []

    def request(self, method: str, url: str, **kwargs) -> StubResponse:
        self.requests.append({"method": method, "url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")
        return self.responses.pop(0)

    def post(self, url: str, **kwargs) -> StubResponse:
        return self.request("POST", url, **kwargs)
