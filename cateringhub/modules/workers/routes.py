from fastapi import APIRouter, Depends
from cateringhub.database.supabase_client import get_supabase
from cateringhub.modules.workers.schemas import WorkerCreate, WorkerUpdate, WorkerResponse, WorkerStatus
from cateringhub.modules.workers.service import WorkersService
from cateringhub.core.dependencies import get_current_membership
from cateringhub.core.membership import ProviderMembership
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/providers/{provider_id}/workers", tags=["workers"])


def get_workers_service(supabase: Client = Depends(get_supabase)) -> WorkersService:
    return WorkersService(supabase)


@router.get("", response_model=List[WorkerResponse])
async def list_workers(
    provider_id: str,
    status: Optional[WorkerStatus] = None,
    team_id: Optional[str] = None,
    search: Optional[str] = None,
    membership: ProviderMembership = Depends(get_current_membership),
    service: WorkersService = Depends(get_workers_service)
):
    """List worker profiles (any active member)"""
    return service.list_workers(provider_id, status=status, team_id=team_id, search=search)


@router.post("", response_model=WorkerResponse, status_code=201)
async def create_worker(
    provider_id: str,
    worker_data: WorkerCreate,
    membership: ProviderMembership = Depends(get_current_membership),
    service: WorkersService = Depends(get_workers_service)
):
    return service.create_worker(membership, worker_data)


@router.get("/{worker_id}", response_model=WorkerResponse)
async def get_worker(
    provider_id: str,
    worker_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    service: WorkersService = Depends(get_workers_service)
):
    return service.get_worker(provider_id, worker_id)


@router.patch("/{worker_id}", response_model=WorkerResponse)
async def update_worker(
    provider_id: str,
    worker_id: str,
    worker_data: WorkerUpdate,
    membership: ProviderMembership = Depends(get_current_membership),
    service: WorkersService = Depends(get_workers_service)
):
    return service.update_worker(membership, worker_id, worker_data)


@router.delete("/{worker_id}", status_code=204)
async def delete_worker(
    provider_id: str,
    worker_id: str,
    membership: ProviderMembership = Depends(get_current_membership),
    service: WorkersService = Depends(get_workers_service)
):
    service.delete_worker(membership, worker_id)
    return None
