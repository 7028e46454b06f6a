# app/api/endpoints/uploads.py

from fastapi import APIRouter, Depends
from loguru import logger

from app.api.deps import require_admin
from app.core.rbac import Action, Resource, actor_from_user, authorize, enforce
from app.core.storage import create_signed_upload
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.location import SignUploadRequest, SignedUpload

router = APIRouter(prefix="/api/uploads", tags=["Uploads"])


# -------------------------------------------------------------------
# Signed direct-upload parameters (admin-class)
# -------------------------------------------------------------------
@router.post("/sign", response_model=ApiResponse[SignedUpload])
async def sign_upload(
    data: SignUploadRequest,
    current_user: User = Depends(require_admin),
):
    enforce(authorize(actor_from_user(current_user), Action.SignUpload, Resource.Media))

    signed = create_signed_upload(data.folder)
    logger.info(f"Signed upload to {signed['path']} issued for {current_user.id}")
    return ApiResponse(message="Upload signature generated", data=SignedUpload(**signed))
