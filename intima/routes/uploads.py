from fastapi import APIRouter, File, Request, UploadFile
from intima.controllers.upload_controller import check_file, save_upload
from intima.schemas.upload_schema import FileCheckRead, FileCheckRequest, UploadRead

router = APIRouter(prefix="/api", tags=["uploads"])


@router.post("/upload", response_model=UploadRead)
def upload_route(request: Request, file: UploadFile = File(...)):
    return save_upload(file, str(request.base_url))


@router.post("/check-file", response_model=FileCheckRead)
def check_file_route(data: FileCheckRequest):
    return check_file(data)
