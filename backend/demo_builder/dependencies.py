from functools import lru_cache, partial
from typing import Iterator, Optional

import requests
from fastapi import Depends

from demo_builder.config import Settings, load_settings
from demo_builder.services.deprovisioning_service import DeprovisioningService
from demo_builder.services.llm_service import LLMService
from demo_builder.services.provisioning_service import ProvisioningService
from demo_builder.services.record_store import RecordStore
from demo_builder.tools.github_client import GitHubClient
from demo_builder.tools.vercel_client import VercelClient


@lru_cache()
def get_settings() -> Settings:
    return load_settings()


def get_http_session() -> Iterator[requests.Session]:
    """One HTTP session per request, shared by every client and closed afterwards."""
    session = requests.Session()
    try:
        yield session
    finally:
        session.close()


def get_record_store(settings: Settings = Depends(get_settings),
                     session: requests.Session = Depends(get_http_session)) -> RecordStore:
    return RecordStore(settings.supabase_url, settings.supabase_service_key, session=session)


def get_vercel_client(settings: Settings = Depends(get_settings),
                      session: requests.Session = Depends(get_http_session)) -> Optional[VercelClient]:
    if not settings.vercel_token:
        return None
    return VercelClient(
        settings.vercel_token,
        team_id=settings.vercel_team_id,
        api_base=settings.vercel_api_base,
        domain=settings.vercel_domain,
        cli=settings.vercel_cli,
        session=session
    )


def get_provisioning_service(settings: Settings = Depends(get_settings),
                             record_store: RecordStore = Depends(get_record_store),
                             vercel_client: Optional[VercelClient] = Depends(get_vercel_client),
                             session: requests.Session = Depends(get_http_session)) -> ProvisioningService:
    llm_service = LLMService(
        settings.openai_api_key,
        model=settings.llm_model,
        base_url=settings.llm_api_base,
        temperature=settings.llm_temperature,
        session=session
    )
    return ProvisioningService(
        settings, llm_service, record_store,
        partial(GitHubClient, api_base=settings.github_api_base, session=session),
        vercel_client
    )


def get_deprovisioning_service(settings: Settings = Depends(get_settings),
                               record_store: RecordStore = Depends(get_record_store),
                               vercel_client: Optional[VercelClient] = Depends(get_vercel_client),
                               session: requests.Session = Depends(get_http_session)) -> DeprovisioningService:
    return DeprovisioningService(
        settings, record_store,
        partial(GitHubClient, api_base=settings.github_api_base, session=session),
        vercel_client
    )
