import os
import re
import json
import logging
from typing import Any, Callable, Dict, List, Optional

import requests

from demo_builder.errors import (
    check_response, connection_error, CommandError, ProviderError, ProviderNotFoundError
)
from demo_builder.models import ProjectHandle, ProjectListing
from demo_builder.utils.git_utils import run_command

PROVIDER = "vercel"
TEAM = "team"
PERSONAL = "personal"

FRAMEWORKS = {"frontend": "nextjs", "backend": None}


def deployment_descriptor(kind: str) -> Dict[str, Any]:
    """Minimal vercel.json for a generated bundle."""
    if kind == "frontend":
        return {
            "version": 2,
            "builds": [{"src": "package.json", "use": "@vercel/next"}],
            "routes": []
        }
    return {
        "version": 2,
        "builds": [{"src": "server.js", "use": "@vercel/node"}],
        "routes": [{"src": "/(.*)", "dest": "/server.js"}]
    }


class VercelClient:
    """REST + CLI wrapper for the deploy host.

    With a team id configured every call is tried in team scope first and
    falls back to the personal account when the team call fails (or, for
    listings, comes back empty).
    """

    def __init__(self, token: str, team_id: Optional[str] = None,
                 api_base: str = "https://api.vercel.com", domain: str = "vercel.app",
                 cli: Optional[List[str]] = None, session: Optional[requests.Session] = None,
                 runner: Callable[..., str] = run_command):
        self.token = token
        self.team_id = team_id
        self.api_base = api_base.rstrip('/')
        self.domain = domain
        self.cli = list(cli or ["npx", "vercel"])
        self.session = session or requests.Session()
        self.runner = runner

    def scopes(self) -> List[str]:
        return [TEAM, PERSONAL] if self.team_id else [PERSONAL]

    def _params(self, scope: str, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        params = dict(extra or {})
        if scope == TEAM and self.team_id:
            params["teamId"] = self.team_id
        return params

    def _request(self, method: str, path: str, operation: str, scope: str,
                 params: Optional[Dict[str, Any]] = None, **kwargs) -> requests.Response:
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json"
        }
        try:
            response = self.session.request(
                method, f"{self.api_base}{path}",
                headers=headers, params=self._params(scope, params), **kwargs
            )
        except requests.RequestException as e:
            raise connection_error(e, PROVIDER, operation)
        return check_response(response, PROVIDER, operation)

    @staticmethod
    def _handle(data: Dict[str, Any], scope: str) -> ProjectHandle:
        return ProjectHandle(id=data.get("id", ""), name=data.get("name", ""),
                             scope=scope, framework=data.get("framework"))

    def list_projects_in_scope(self, scope: str) -> ProjectListing:
        projects: List[ProjectHandle] = []
        params: Dict[str, Any] = {"limit": 100}
        while True:
            data = self._request("GET", "/v9/projects", "list", scope, params=params).json()
            projects.extend(self._handle(p, scope) for p in data.get("projects", []))
            next_page = (data.get("pagination") or {}).get("next")
            if not next_page:
                break
            params = {"limit": 100, "until": next_page}
        return ProjectListing(scope=scope, projects=projects)

    def list_projects(self) -> ProjectListing:
        """Fresh listing of every visible project, team scope first."""
        last_error: Optional[ProviderError] = None
        for scope in self.scopes():
            try:
                listing = self.list_projects_in_scope(scope)
            except ProviderError as e:
                logging.warning(f"Vercel {scope} endpoint failed: {e}")
                last_error = e
                continue
            if scope == TEAM and not listing.projects:
                logging.warning("Vercel team endpoint returned no projects, falling back to personal account")
                continue
            logging.info(f"Vercel {scope} endpoint successful, found {len(listing.projects)} projects")
            return listing
        if last_error:
            raise last_error
        return ProjectListing(scope=PERSONAL)

    def create_project(self, name: str, kind: str) -> ProjectHandle:
        last_error: Optional[ProviderError] = None
        for scope in self.scopes():
            try:
                response = self._request("POST", "/v10/projects", "create", scope, json={
                    "name": name,
                    "framework": FRAMEWORKS.get(kind)
                })
            except ProviderError as e:
                if scope == TEAM:
                    logging.warning(f"Vercel team project creation failed, falling back to personal account: {e}")
                last_error = e
                continue
            project = self._handle(response.json(), scope)
            logging.info(f"Created Vercel project {project.name} ({project.id}) in {scope} scope")
            return project
        raise last_error

    def find_project(self, name: str) -> Optional[ProjectHandle]:
        for scope in self.scopes():
            try:
                return self._handle(self._request("GET", f"/v9/projects/{name}", "find", scope).json(), scope)
            except ProviderNotFoundError:
                if scope == TEAM:
                    logging.info(f"Vercel project {name} not found in team scope, falling back to personal account")
                continue
            except ProviderError as e:
                logging.warning(f"Vercel {scope} lookup of {name} failed: {e}")
        return None

    def delete_project(self, id_or_name: str, scope: str = PERSONAL) -> None:
        logging.info(f"Deleting Vercel project {id_or_name} ({scope} scope)")
        self._request("DELETE", f"/v9/projects/{id_or_name}", "delete", scope)
        logging.info(f"Deleted Vercel project {id_or_name}")

    def account_id(self, scope: str) -> str:
        """Org id the CLI links against: the team id, or the personal user id."""
        if scope == TEAM and self.team_id:
            return self.team_id
        data = self._request("GET", "/v2/user", "find", PERSONAL).json()
        user = data.get("user", {})
        return user.get("id") or user.get("uid", "")

    def parse_deployment_url(self, output: str) -> Optional[str]:
        """Last https://<host>.<domain> URL printed by the CLI."""
        matches = re.findall(rf"https://[a-z0-9.-]+\.{re.escape(self.domain)}", output, re.IGNORECASE)
        return matches[-1] if matches else None

    def deploy_directory(self, project: ProjectHandle, directory: str, kind: str) -> str:
        """Write vercel.json, run the CLI against the project and return its live URL."""
        with open(os.path.join(directory, "vercel.json"), 'w', encoding='utf-8') as f:
            json.dump(deployment_descriptor(kind), f, indent=2)

        command = self.cli + ["deploy", "--prod", "--yes", "--token", self.token]
        if project.scope == TEAM and self.team_id:
            command += ["--scope", self.team_id]
        env = {
            "VERCEL_ORG_ID": self.account_id(project.scope),
            "VERCEL_PROJECT_ID": project.id
        }

        output = self.runner(command, cwd=directory, env=env, secrets=[self.token])
        url = self.parse_deployment_url(output)
        if not url:
            raise CommandError(f"Could not extract deployment URL for {project.name}",
                               command=" ".join(self.cli + ["deploy"]), output=output[-500:])
        logging.info(f"Deployed {project.name}: {url}")
        return url
