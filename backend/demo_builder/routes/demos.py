import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from demo_builder.dependencies import get_deprovisioning_service, get_provisioning_service
from demo_builder.errors import ValidationError
from demo_builder.models import DemoRequest
from demo_builder.services.deprovisioning_service import DeprovisioningService
from demo_builder.services.provisioning_service import ProvisioningService

router = APIRouter(tags=["demos"])


class GenerateDemoBody(BaseModel):
    customerName: Optional[str] = None
    logoUrl: Optional[str] = None
    writeKey: Optional[str] = None
    profileToken: Optional[str] = None
    unifySpaceId: Optional[str] = None
    githubToken: Optional[str] = None
    supabaseUserId: Optional[str] = None
    inspirationRepo: Optional[str] = None

    def to_request(self) -> DemoRequest:
        return DemoRequest(
            customer_name=self.customerName or "",
            write_key=self.writeKey or "",
            profile_token=self.profileToken or "",
            unify_space_id=self.unifySpaceId or "",
            github_token=self.githubToken or "",
            user_id=self.supabaseUserId or "",
            logo_url=self.logoUrl or None,
            inspiration_repo=self.inspirationRepo or None
        )


@router.get("/health", tags=["health"])
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.post("/generate-demo")
def generate_demo(body: GenerateDemoBody,
                  service: ProvisioningService = Depends(get_provisioning_service)):
    """Generate, push, deploy and record one demo."""
    logging.info(f"Generate demo requested for: {body.customerName}")
    return service.provision(body.to_request()).to_dict()


@router.get("/demos/{user_id}")
def list_demos(user_id: str, service: ProvisioningService = Depends(get_provisioning_service)):
    return {"demos": [demo.to_dict() for demo in service.list_demos(user_id)]}


@router.delete("/delete-vercel-deployments")
def delete_vercel_deployments(demoId: Optional[str] = None,
                              service: DeprovisioningService = Depends(get_deprovisioning_service)):
    return service.delete_deployments(demoId).to_dict()


@router.delete("/delete-demo-data")
def delete_demo_data(demoId: Optional[str] = None, githubToken: Optional[str] = None,
                     service: DeprovisioningService = Depends(get_deprovisioning_service)):
    if not demoId:
        raise ValidationError("Demo ID is required")
    if not githubToken:
        raise ValidationError("GitHub token is required")
    return service.delete_data(demoId, githubToken).to_dict()


@router.delete("/delete-demo")
def delete_demo(demoId: Optional[str] = None, githubToken: Optional[str] = None,
                service: DeprovisioningService = Depends(get_deprovisioning_service)):
    """Legacy endpoint - delete everything."""
    return service.delete_all(demoId, githubToken).to_dict()


@router.get("/test-vercel")
def test_vercel(service: DeprovisioningService = Depends(get_deprovisioning_service)):
    return service.test_connection()


@router.get("/github/repos")
def github_repos(githubToken: Optional[str] = None,
                 service: ProvisioningService = Depends(get_provisioning_service)):
    return {"repositories": service.list_repositories(githubToken)}
