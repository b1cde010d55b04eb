"""
Public download endpoint for generated letters.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse, Response

from letterpress.config import Settings, get_settings
from letterpress.dependencies import get_artifact_store
from letterpress.errors import ArtifactMissingError, NotFoundError, PersistenceError
from letterpress.services.downloads import FileDownload, resolve_download

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/{token}")
def download_pdf(
    token: str,
    artifact_store=Depends(get_artifact_store),
    settings: Settings = Depends(get_settings),
):
    """
    Serve a generated PDF by its download token.

    Local files are streamed back as an attachment; remotely stored files
    are redirected to.
    """
    try:
        resolution = resolve_download(token, artifact_store, settings.public_base_url)
    except ArtifactMissingError:
        raise HTTPException(status_code=404, detail="PDF file not found")
    except NotFoundError:
        raise HTTPException(status_code=404, detail="PDF not found")
    except PersistenceError as e:
        logger.error(f"Error serving PDF for token lookup: {e}")
        raise HTTPException(status_code=500, detail="Error serving PDF")

    if isinstance(resolution, FileDownload):
        return Response(
            content=resolution.content,
            media_type=resolution.media_type,
            headers={"Content-Disposition": f'attachment; filename="{resolution.filename}"'},
        )

    return RedirectResponse(url=resolution.url, status_code=302)
