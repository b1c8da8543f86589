import logging
from typing import Any, Callable, Dict, List, Optional

from demo_builder.config import Settings
from demo_builder.errors import ProviderError, ProviderNotFoundError, ValidationError
from demo_builder.models import DemoRecord, OperationResult
from demo_builder.services.name_resolver import (
    resolve_deletion_target, resolve_deploy_project_name, resolve_repo_coordinates
)
from demo_builder.services.record_store import RecordStore
from demo_builder.tools.github_client import GitHubClient
from demo_builder.tools.vercel_client import VercelClient


class DeprovisioningService:
    """Tear down a demo: Vercel projects, then the GitHub repository, then the record.

    Each Vercel project and the repository fail independently and only add
    warnings. Looking up the record and deleting it are the only steps whose
    failure fails the call.
    """

    def __init__(self, settings: Settings, record_store: RecordStore,
                 github_client_factory: Callable[[str], GitHubClient],
                 vercel_client: Optional[VercelClient]):
        self.settings = settings
        self.record_store = record_store
        self.github_client_factory = github_client_factory
        self.vercel_client = vercel_client

    def _load(self, demo_id: Optional[str]) -> DemoRecord:
        if not demo_id:
            raise ValidationError("Demo ID is required")
        return self.record_store.get(demo_id)

    def delete_deployments(self, demo_id: Optional[str]) -> OperationResult:
        demo = self._load(demo_id)
        logging.info(f"Deleting Vercel deployments for demo: {demo_id}")
        warnings: List[str] = []
        if not self._delete_deployments(demo, warnings):
            return OperationResult(True, "No Vercel deployments found", warnings)
        if warnings:
            return OperationResult(True, "Vercel deployment deletion finished with warnings", warnings)
        return OperationResult(True, "Vercel deployments deleted successfully", warnings)

    def delete_data(self, demo_id: Optional[str], github_token: Optional[str] = None) -> OperationResult:
        demo = self._load(demo_id)
        logging.info(f"Deleting demo data: {demo_id}")
        warnings: List[str] = []
        self._delete_repository(demo, github_token, warnings)
        self._delete_record(demo_id)
        return OperationResult(True, "Demo data deleted successfully", warnings)

    def delete_all(self, demo_id: Optional[str], github_token: Optional[str]) -> OperationResult:
        """Legacy combined delete: deployments, repository, record."""
        if not demo_id or not github_token:
            raise ValidationError("Demo ID and GitHub token are required")
        demo = self._load(demo_id)
        logging.info(f"Deleting demo (legacy): {demo_id}")
        warnings: List[str] = []
        self._delete_deployments(demo, warnings)
        self._delete_repository(demo, github_token, warnings)
        self._delete_record(demo_id)
        return OperationResult(True, "Demo deleted successfully", warnings)

    def _delete_deployments(self, demo: DemoRecord, warnings: List[str]) -> bool:
        """False when the demo has no deployment URLs at all."""
        if not demo.has_deployments:
            logging.info("No Vercel URLs found, skipping Vercel deletion")
            return False
        if self.vercel_client is None:
            logging.warning("VERCEL_TOKEN not set, skipping Vercel deletion")
            warnings.append("Vercel deletion skipped: VERCEL_TOKEN not set")
            return True

        for role, url in (("frontend", demo.frontend_url), ("backend", demo.backend_url)):
            if not url:
                continue
            project_name = resolve_deploy_project_name(url, self.settings.vercel_domain)
            if not project_name:
                logging.warning(f"No valid Vercel project name found in {role} URL: {url}")
                warnings.append(f"Could not extract a Vercel project name from {role} URL {url}")
                continue
            try:
                self._delete_project(project_name)
            except Exception as e:
                logging.error(f"Error deleting Vercel {role} project {project_name}: {str(e)}")
                warnings.append(f"Failed to delete Vercel {role} project {project_name}: {e}")
        return True

    def _delete_project(self, project_name: str) -> None:
        # Listing is fetched per project, never reused
        listing = self.vercel_client.list_projects()
        match = resolve_deletion_target(project_name, listing)
        try:
            self.vercel_client.delete_project(match.project.id, match.project.scope)
        except ProviderNotFoundError:
            logging.info(f"Vercel project {project_name} not found, nothing to delete")

    def _delete_repository(self, demo: DemoRecord, github_token: Optional[str], warnings: List[str]) -> None:
        if not demo.github_repo_url or not github_token:
            logging.info("No GitHub repo URL or token found, skipping GitHub deletion")
            return

        coordinates = resolve_repo_coordinates(demo.github_repo_url, self.settings.github_domain)
        if not coordinates:
            logging.warning(f"Invalid GitHub repository URL: {demo.github_repo_url}")
            warnings.append(f"Invalid GitHub repository URL: {demo.github_repo_url}")
            return

        owner, name = coordinates
        try:
            self.github_client_factory(github_token).delete_repository(owner, name)
        except ProviderNotFoundError:
            logging.info(f"GitHub repository {owner}/{name} not found, nothing to delete")
        except Exception as e:
            logging.error(f"Error deleting GitHub repository {owner}/{name}: {str(e)}")
            warnings.append(f"Failed to delete GitHub repository {owner}/{name}: {e}")

    def _delete_record(self, demo_id: str) -> None:
        self.record_store.delete(demo_id)

    def test_connection(self) -> Dict[str, Any]:
        """Report which Vercel scope answers and what it can see. Read-only."""
        if self.vercel_client is None:
            raise ValidationError("VERCEL_TOKEN not set")

        logging.info(f"Testing Vercel API connection, team ID: {self.vercel_client.team_id or 'none (personal account)'}")
        try:
            listing = self.vercel_client.list_projects()
        except ProviderError as e:
            logging.warning(f"Vercel connection test failed: {e}")
            return {"success": False, "endpointUsed": "", "projectCount": 0, "projects": [], "details": str(e)}

        return {
            "success": len(listing.projects) > 0,
            "endpointUsed": listing.scope,
            "projectCount": len(listing.projects),
            "projects": [project.to_dict() for project in listing.projects]
        }
