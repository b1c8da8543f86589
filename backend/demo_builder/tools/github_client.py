import base64
import logging
from typing import Any, Dict, List, Optional

import requests

from demo_builder.errors import check_response, connection_error, ProviderError, ProviderNotFoundError
from demo_builder.models import RepoHandle
from demo_builder.utils import git_utils

PROVIDER = "github"


class GitHubClient:
    """REST wrapper for the code host, bound to one user's token."""

    def __init__(self, token: str, api_base: str = "https://api.github.com",
                 session: Optional[requests.Session] = None):
        self.token = token
        self.api_base = api_base.rstrip('/')
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28"
        }

    def _request(self, method: str, path: str, operation: str, **kwargs) -> requests.Response:
        try:
            response = self.session.request(method, f"{self.api_base}{path}", headers=self._headers(), **kwargs)
        except requests.RequestException as e:
            raise connection_error(e, PROVIDER, operation)
        return check_response(response, PROVIDER, operation)

    def create_repository(self, name: str, private: bool = True, description: str = "") -> RepoHandle:
        """Create a repository for the authenticated user."""
        logging.info(f"Creating GitHub repository: {name}")
        response = self._request("POST", "/user/repos", "create", json={
            "name": name,
            "private": private,
            "auto_init": False,
            "description": description
        })
        data = response.json()
        repo = RepoHandle(
            owner=data["owner"]["login"],
            name=data["name"],
            html_url=data["html_url"],
            clone_url=data.get("clone_url")
        )
        logging.info(f"Created GitHub repository: {repo.html_url}")
        return repo

    def find_repository(self, owner: str, name: str) -> Optional[RepoHandle]:
        try:
            response = self._request("GET", f"/repos/{owner}/{name}", "find")
        except ProviderNotFoundError:
            return None
        data = response.json()
        return RepoHandle(owner=data["owner"]["login"], name=data["name"],
                          html_url=data["html_url"], clone_url=data.get("clone_url"))

    def delete_repository(self, owner: str, name: str) -> None:
        logging.info(f"Deleting GitHub repository: {owner}/{name}")
        self._request("DELETE", f"/repos/{owner}/{name}", "delete")
        logging.info(f"Deleted GitHub repository: {owner}/{name}")

    def push_directory(self, repo: RepoHandle, local_dir: str) -> None:
        """Commit local_dir and push it to the repository's main branch."""
        git_utils.init_and_push(local_dir, repo.html_url, self.token)

    def list_repositories(self) -> List[Dict[str, Any]]:
        """Owner repositories, most recently updated first, archived/disabled dropped."""
        response = self._request("GET", "/user/repos", "list", params={
            "sort": "updated",
            "per_page": 100,
            "type": "owner"
        })
        return [
            {
                "id": repo.get("id"),
                "name": repo.get("name"),
                "full_name": repo.get("full_name"),
                "description": repo.get("description"),
                "html_url": repo.get("html_url"),
                "language": repo.get("language"),
                "updated_at": repo.get("updated_at"),
                "stargazers_count": repo.get("stargazers_count"),
                "forks_count": repo.get("forks_count"),
            }
            for repo in response.json()
            if not repo.get("archived") and not repo.get("disabled")
        ]

    def _file_text(self, owner: str, name: str, path: str) -> str:
        try:
            data = self._request("GET", f"/repos/{owner}/{name}/contents/{path}", "find").json()
        except ProviderNotFoundError:
            return ""
        if isinstance(data, dict) and data.get("content"):
            return base64.b64decode(data["content"]).decode("utf-8", errors="replace")
        return ""

    def get_repository_context(self, full_name: str) -> str:
        """Summary of an inspiration repository for the generation prompts."""
        owner, _, name = full_name.partition('/')
        try:
            repo = self._request("GET", f"/repos/{owner}/{name}", "find").json()

            readme = ""
            try:
                readme_data = self._request("GET", f"/repos/{owner}/{name}/readme", "find").json()
                readme = base64.b64decode(readme_data.get("content", "")).decode("utf-8", errors="replace")
            except ProviderNotFoundError:
                logging.info(f"No README found for repository {full_name}")

            contents = self._request("GET", f"/repos/{owner}/{name}/contents/", "find").json()
            if isinstance(contents, list):
                structure = "\n".join(
                    f"{'dir' if item.get('type') == 'dir' else 'file'}: {item.get('name')}"
                    for item in contents
                    if item.get("type") in ("file", "dir")
                )
            else:
                structure = "Unable to fetch file structure"

            package_json = self._file_text(owner, name, "package.json")
        except ProviderError as e:
            logging.error(f"Error fetching repository context for {full_name}: {e}")
            return f"Repository: {full_name} (Error fetching details)"

        sections = [
            f"Repository: {full_name}",
            f"Description: {repo.get('description') or 'No description'}",
            f"Language: {repo.get('language') or 'Not specified'}",
            f"Stars: {repo.get('stargazers_count', 0)}",
            f"Forks: {repo.get('forks_count', 0)}",
            "",
            "File Structure:",
            structure,
        ]
        if readme:
            sections += ["", "README Content:", readme[:1000] + ("..." if len(readme) > 1000 else "")]
        if package_json:
            sections += ["", "Package.json:", package_json]
        return "\n".join(sections)
