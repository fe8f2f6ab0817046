from fastapi import APIRouter, Depends

from filevault.api.dependencies.permissions import require_admin_secret
from filevault.api.dependencies.service_getters.common_service_getter import get_reconciler
from filevault.core.api_response import StandardResponse, response_success
from filevault.schemas.file.cleanup_schemas import CleanupSummary
from filevault.services.file.reconciler import ExpiryReconciler

router = APIRouter()


@router.post(
    "/cleanup",
    response_model=StandardResponse[CleanupSummary],
    dependencies=[Depends(require_admin_secret)],
    summary="Run the expiry sweep once",
)
async def run_cleanup(reconciler: ExpiryReconciler = Depends(get_reconciler)):
    summary = await reconciler.run_cleanup()
    return response_success(data=summary, message="Cleanup completed")
