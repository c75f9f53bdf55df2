"""Folder API routes - renders the passive output of a folder panel."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from panelflow.api.dependencies import get_config
from panelflow.domain.ports.config import AppConfig
from panelflow.infrastructure.folder import read_folder

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/folders", tags=["folders"])


class FolderReadRequest(BaseModel):
    path: str = Field(..., min_length=1)


class FolderReadResponse(BaseModel):
    folder_path: str
    file_count: int
    output: str


@router.post("/read")
async def read(body: FolderReadRequest, config: AppConfig = Depends(get_config)) -> FolderReadResponse:
    try:
        snapshot = read_folder(body.path, config.folder)
    except (FileNotFoundError, NotADirectoryError):
        raise HTTPException(status_code=404, detail=f"Folder not found: {body.path}")
    except OSError as e:
        logger.warning("Failed to read folder %s: %s", body.path, e)
        raise HTTPException(status_code=400, detail=f"Cannot read folder: {body.path}")
    return FolderReadResponse(
        folder_path=snapshot.folder_path,
        file_count=len(snapshot.files),
        output=snapshot.render(),
    )
