import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

CONFIG_PATH = Path(__file__).resolve().parent / "app_config.yaml"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once and handed to every client."""

    app_title: str = "Demo Builder"
    app_description: str = ""
    app_version: str = "1.0.0"
    cors_origins: List[str] = field(default_factory=list)

    vercel_token: Optional[str] = None
    vercel_team_id: Optional[str] = None
    vercel_api_base: str = "https://api.vercel.com"
    vercel_domain: str = "vercel.app"
    vercel_cli: List[str] = field(default_factory=lambda: ["npx", "vercel"])

    github_api_base: str = "https://api.github.com"
    github_domain: str = "github.com"
    placeholder_repo_url: str = "https://github.com/your-username/demo-placeholder"

    openai_api_key: Optional[str] = None
    llm_api_base: str = "https://api.openai.com/v1"
    llm_model: str = "gpt-4"
    llm_temperature: float = 0.7

    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None

    name_prefix: str = "demo"
    slug_max_length: int = 48
    workspace_root: Optional[str] = None
    workspace_prefix: str = "demo-"


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load the YAML defaults file."""
    if not path.exists():
        logging.warning(f"Config file not found, using built-in defaults: {path}")
        return {}
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def load_settings(config_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Merge YAML defaults with environment credentials into a Settings object."""
    env = os.environ if environ is None else environ
    config = _load_yaml(config_path or CONFIG_PATH)

    app_cfg = config.get("app", {})
    deploy_cfg = config.get("deploy_host", {})
    code_cfg = config.get("code_host", {})
    llm_cfg = config.get("llm", {})
    naming_cfg = config.get("naming", {})
    workspace_cfg = config.get("workspace", {})
    defaults = Settings()

    return Settings(
        app_title=app_cfg.get("title", defaults.app_title),
        app_description=app_cfg.get("description", defaults.app_description),
        app_version=str(app_cfg.get("version", defaults.app_version)),
        cors_origins=list(app_cfg.get("cors_origins", [])),
        vercel_token=env.get("VERCEL_TOKEN") or None,
        vercel_team_id=env.get("VERCEL_TEAM_ID") or None,
        vercel_api_base=deploy_cfg.get("api_base", defaults.vercel_api_base).rstrip('/'),
        vercel_domain=deploy_cfg.get("domain", defaults.vercel_domain),
        vercel_cli=list(deploy_cfg.get("cli", defaults.vercel_cli)),
        github_api_base=code_cfg.get("api_base", defaults.github_api_base).rstrip('/'),
        github_domain=code_cfg.get("domain", defaults.github_domain),
        placeholder_repo_url=code_cfg.get("placeholder_repo_url", defaults.placeholder_repo_url),
        openai_api_key=env.get("OPENAI_API_KEY") or None,
        llm_api_base=llm_cfg.get("api_base", defaults.llm_api_base).rstrip('/'),
        llm_model=llm_cfg.get("model", defaults.llm_model),
        llm_temperature=float(llm_cfg.get("temperature", defaults.llm_temperature)),
        supabase_url=(env.get("SUPABASE_URL") or "").rstrip('/') or None,
        supabase_service_key=env.get("SUPABASE_SERVICE_ROLE_KEY") or None,
        name_prefix=naming_cfg.get("prefix", defaults.name_prefix),
        slug_max_length=int(naming_cfg.get("slug_max_length", defaults.slug_max_length)),
        workspace_root=env.get("DEMO_WORKSPACE_ROOT") or None,
        workspace_prefix=workspace_cfg.get("prefix", defaults.workspace_prefix),
    )


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Console logging, plus a file handler when LOG_FILE is set."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    log_file = log_file or os.environ.get("LOG_FILE")
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=(level or os.environ.get("LOG_LEVEL", "INFO")).upper(),
        format=LOG_FORMAT,
        handlers=handlers
    )
