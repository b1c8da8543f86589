import logging
from typing import Callable, List, Optional

from demo_builder.config import Settings
from demo_builder.errors import PersistenceError, ValidationError
from demo_builder.models import DemoRecord, DemoRequest, ProvisionResult
from demo_builder.services import bundle_writer
from demo_builder.services.llm_service import LLMService
from demo_builder.services.record_store import RecordStore
from demo_builder.tools.github_client import GitHubClient
from demo_builder.tools.vercel_client import VercelClient
from demo_builder.utils import naming

REQUIRED_FIELDS = {
    "customer_name": "customerName",
    "write_key": "writeKey",
    "profile_token": "profileToken",
    "unify_space_id": "unifySpaceId",
    "github_token": "githubToken",
    "user_id": "supabaseUserId",
}


def validate_demo_request(request: DemoRequest) -> None:
    missing = [label for attr, label in REQUIRED_FIELDS.items() if not getattr(request, attr)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


class ProvisioningService:
    """Generate code, push it to GitHub, deploy it to Vercel and record the demo.

    Code generation and writing the bundles are fatal. Repository and
    deployment failures are replaced with placeholder URLs; a failed record
    insert is only reported as a warning.
    """

    def __init__(self, settings: Settings, llm_service: LLMService, record_store: RecordStore,
                 github_client_factory: Callable[[str], GitHubClient],
                 vercel_client: Optional[VercelClient]):
        self.settings = settings
        self.llm_service = llm_service
        self.record_store = record_store
        self.github_client_factory = github_client_factory
        self.vercel_client = vercel_client

    def provision(self, request: DemoRequest) -> ProvisionResult:
        validate_demo_request(request)
        warnings: List[str] = []
        github = self.github_client_factory(request.github_token)

        logging.info(f"STEP 1: Generating demo for customer: {request.customer_name}")
        suffix = naming.new_suffix()
        names = {
            role: naming.generate(request.customer_name, role, suffix,
                                  prefix=self.settings.name_prefix,
                                  max_slug_length=self.settings.slug_max_length)
            for role in naming.ROLES
        }

        inspiration = ""
        if request.inspiration_repo:
            inspiration = github.get_repository_context(request.inspiration_repo)

        with bundle_writer.demo_workspace(self.settings.workspace_root, self.settings.workspace_prefix) as workspace:
            logging.info("STEP 2: Generating frontend and backend code")
            frontend_code = self.llm_service.generate_frontend_code(
                request.customer_name, request.logo_url, request.write_key, inspiration
            )
            backend_code = self.llm_service.generate_backend_code(
                request.profile_token, request.unify_space_id, inspiration
            )

            logging.info("STEP 3: Writing project bundles")
            bundle_writer.write_frontend_bundle(
                workspace.frontend_dir, frontend_code, request.customer_name,
                request.logo_url, request.write_key
            )
            bundle_writer.write_backend_bundle(
                workspace.backend_dir, backend_code, request.profile_token, request.unify_space_id
            )

            logging.info("STEP 4: Creating GitHub repository")
            repo_url = self._create_repository(github, names["repo"], request.customer_name, workspace.root, warnings)

            logging.info("STEP 5: Deploying frontend")
            frontend_url = self._deploy(names["frontend"], "frontend", workspace.frontend_dir, warnings)

            logging.info("STEP 6: Deploying backend")
            backend_url = self._deploy(names["backend"], "backend", workspace.backend_dir, warnings)

            logging.info("STEP 7: Storing demo metadata")
            demo_id = self._store(request, frontend_url, backend_url, repo_url, warnings)

        logging.info(f"Demo ready - frontend: {frontend_url} backend: {backend_url} repo: {repo_url}")
        return ProvisionResult(
            frontend_url=frontend_url,
            backend_url=backend_url,
            repo_url=repo_url,
            demo_id=demo_id,
            warnings=warnings
        )

    def _create_repository(self, github: GitHubClient, repo_name: str, customer_name: str,
                           local_dir: str, warnings: List[str]) -> str:
        try:
            repo = github.create_repository(repo_name, private=True, description=f"Demo for {customer_name}")
            github.push_directory(repo, local_dir)
            logging.info(f"STEP 4: Repository ready - {repo.html_url}")
            return repo.html_url
        except Exception as e:
            logging.warning(f"GitHub integration failed, continuing without repo creation: {str(e)}")
            warnings.append(f"GitHub repository creation failed: {e}")
            return self.settings.placeholder_repo_url

    def _deploy(self, project_name: str, kind: str, directory: str, warnings: List[str]) -> str:
        if self.vercel_client is None:
            logging.warning("VERCEL_TOKEN not set, returning placeholder URL")
            warnings.append(f"Vercel {kind} deployment skipped: VERCEL_TOKEN not set")
            return naming.placeholder_url(project_name, self.settings.vercel_domain)
        try:
            project = self.vercel_client.create_project(project_name, kind)
            return self.vercel_client.deploy_directory(project, directory, kind)
        except Exception as e:
            logging.warning(f"Vercel {kind} deployment failed, using placeholder URL: {str(e)}")
            warnings.append(f"Vercel {kind} deployment failed: {e}")
            return naming.placeholder_url(project_name, self.settings.vercel_domain)

    def _store(self, request: DemoRequest, frontend_url: str, backend_url: str, repo_url: str,
               warnings: List[str]) -> Optional[str]:
        record = DemoRecord(
            user_id=request.user_id,
            customer_name=request.customer_name,
            logo_url=request.logo_url,
            segment_write_key=request.write_key,
            segment_profile_token=request.profile_token,
            segment_unify_space_id=request.unify_space_id,
            frontend_url=frontend_url,
            backend_url=backend_url,
            github_repo_url=repo_url
        )
        try:
            return self.record_store.insert(record).id
        except PersistenceError as e:
            logging.error(f"Error storing demo in database: {str(e)}")
            warnings.append(f"Demo metadata was not stored: {e}")
            return None

    def list_demos(self, user_id: str) -> List[DemoRecord]:
        if not user_id:
            raise ValidationError("User ID is required")
        return self.record_store.list_by_owner(user_id)

    def list_repositories(self, github_token: Optional[str]) -> List[dict]:
        """Candidate inspiration repositories for a GitHub token."""
        if not github_token:
            raise ValidationError("GitHub token is required")
        return self.github_client_factory(github_token).list_repositories()
