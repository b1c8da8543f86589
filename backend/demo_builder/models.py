from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class DemoRecord:
    """One row of the `demos` table."""

    user_id: str
    customer_name: str
    segment_write_key: str
    segment_profile_token: str
    segment_unify_space_id: str
    logo_url: Optional[str] = None
    frontend_url: Optional[str] = None
    backend_url: Optional[str] = None
    github_repo_url: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "DemoRecord":
        return cls(
            id=row.get("id"),
            user_id=row.get("user_id", ""),
            customer_name=row.get("customer_name", ""),
            logo_url=row.get("logo_url"),
            segment_write_key=row.get("segment_write_key", ""),
            segment_profile_token=row.get("segment_profile_token", ""),
            segment_unify_space_id=row.get("segment_unify_space_id", ""),
            frontend_url=row.get("frontend_url"),
            backend_url=row.get("backend_url"),
            github_repo_url=row.get("github_repo_url"),
            created_at=row.get("created_at"),
        )

    def to_row(self) -> Dict[str, Any]:
        """Insert payload; id and created_at are assigned by the store."""
        return {
            "user_id": self.user_id,
            "customer_name": self.customer_name,
            "logo_url": self.logo_url,
            "segment_write_key": self.segment_write_key,
            "segment_profile_token": self.segment_profile_token,
            "segment_unify_space_id": self.segment_unify_space_id,
            "frontend_url": self.frontend_url,
            "backend_url": self.backend_url,
            "github_repo_url": self.github_repo_url,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_row()
        data["id"] = self.id
        data["created_at"] = self.created_at
        return data

    @property
    def has_deployments(self) -> bool:
        return bool(self.frontend_url or self.backend_url)


@dataclass
class ProjectHandle:
    """A Vercel project as seen through one authorization scope."""

    id: str
    name: str
    scope: str = "personal"
    framework: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "id": self.id, "framework": self.framework}


@dataclass
class ProjectListing:
    """Snapshot of every project visible to one scope. Never cached."""

    scope: str
    projects: List[ProjectHandle] = field(default_factory=list)


@dataclass
class RepoHandle:
    owner: str
    name: str
    html_url: str
    clone_url: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass
class DemoRequest:
    """Inputs of one provisioning run."""

    customer_name: str
    write_key: str
    profile_token: str
    unify_space_id: str
    github_token: str
    user_id: str
    logo_url: Optional[str] = None
    inspiration_repo: Optional[str] = None


@dataclass
class ProvisionResult:
    frontend_url: str
    backend_url: str
    repo_url: str
    demo_id: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "frontendUrl": self.frontend_url,
            "backendUrl": self.backend_url,
            "repoUrl": self.repo_url,
            "demoId": self.demo_id,
            "warnings": list(self.warnings),
        }


@dataclass
class OperationResult:
    """Primary outcome plus the non-fatal warnings collected on the way."""

    success: bool
    message: str
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "warnings": list(self.warnings),
        }
