"""FastAPI router: /api/user/servers/{uuid_short}/addons/datapackinstaller/*

  GET  /detect-version  → Minecraft MAJOR.MINOR from the versions folder
  GET  /worlds          → worlds on the server (directories with level.dat)
  GET  /packs           → Vanilla Tweaks catalog JSON (cached 60 min)
  GET  /image           → pack icon PNG (cached 24h, ETag, never 404)
  POST /install         → generate, download and upload the selected packs

Authentication and subuser permissions are enforced by the panel before
requests reach this router.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Header, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .config import API_PREFIX, DEFAULT_MC_VERSION, DEFAULT_PACK_TYPE, DEFAULT_WORLD
from .deployment import RemoteFileDeployer
from .discovery import WorldDiscovery
from .errors import DatapackInstallerError
from .images import PackImageProxy, placeholder_response
from .installer import ArchiveInstaller, build_job
from .models import PackType

logger = logging.getLogger(__name__)

router = APIRouter(prefix=API_PREFIX, tags=["datapackinstaller"])


class InstallIn(BaseModel):
    mcVersion: Optional[str] = None
    pack_type: str = DEFAULT_PACK_TYPE
    packs: Dict[str, List[str]] = Field(default_factory=dict)
    world: str = DEFAULT_WORLD


def success(data: Optional[Any] = None, message: str = "") -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return body


def error_response(e: DatapackInstallerError, operation: str) -> JSONResponse:
    logger.error(f"Error {operation}: {e.message}")
    return JSONResponse(
        status_code=e.status_code,
        content={"success": False, "message": e.message, "error_code": e.error_code},
    )


@router.get("/detect-version")
def detect_version(uuid_short: str, request: Request):
    try:
        _, files = request.app.state.registry.files_for(uuid_short)
        version = WorldDiscovery(files).detect_version()
    except DatapackInstallerError as e:
        return error_response(e, "detecting version")

    return success({"version": version}, "Version detected" if version else "Versions folder not found")


@router.get("/worlds")
def list_worlds(uuid_short: str, request: Request):
    try:
        _, files = request.app.state.registry.files_for(uuid_short)
        worlds = WorldDiscovery(files).list_worlds()
    except DatapackInstallerError as e:
        return error_response(e, "listing worlds")

    return success({"worlds": [w.to_dict() for w in worlds]}, "Worlds listed")


@router.get("/packs")
def get_packs(
    uuid_short: str,
    request: Request,
    mcVersion: str = Query(DEFAULT_MC_VERSION),
    type: str = Query(DEFAULT_PACK_TYPE),
    user_agent: Optional[str] = Header(None),
):
    client = request.app.state.catalog_client
    pack_type = PackType.parse(type)
    try:
        request.app.state.registry.resolve(uuid_short)
        cached = client.is_catalog_cached(mcVersion, pack_type)
        data = client.fetch_catalog(mcVersion, pack_type, user_agent=user_agent)
    except DatapackInstallerError as e:
        return error_response(e, "fetching packs")

    return success(data, "Packs fetched (cached)" if cached else "Packs fetched")


@router.get("/image")
def get_pack_image(
    uuid_short: str,
    request: Request,
    pack: Optional[str] = Query(None),
    mcVersion: str = Query(DEFAULT_MC_VERSION),
    type: str = Query(DEFAULT_PACK_TYPE),
    if_none_match: Optional[str] = Header(None),
):
    try:
        request.app.state.registry.resolve(uuid_short)
    except DatapackInstallerError as e:
        return error_response(e, "fetching pack image")

    if not pack:
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Pack name is required",
                     "error_code": "MISSING_PACK_NAME"},
        )

    proxy = PackImageProxy(request.app.state.catalog_client)
    try:
        image = proxy.get_image(pack, mcVersion, PackType.parse(type), if_none_match=if_none_match)
    except DatapackInstallerError as e:
        logger.warning(f"Serving placeholder for {pack}: {e.message}")
        image = placeholder_response()

    return Response(content=image.body, status_code=image.status_code, headers=image.headers)


@router.post("/install")
def install_packs(
    uuid_short: str,
    body: InstallIn,
    request: Request,
    user_agent: Optional[str] = Header(None),
):
    state = request.app.state
    try:
        job = build_job(body.mcVersion, body.pack_type, body.packs, body.world)
        server, files = state.registry.files_for(uuid_short)
        installer = ArchiveInstaller(
            state.catalog_client,
            RemoteFileDeployer(files),
            server.uuid,
            activity=state.activity,
            sleep=state.sleep,
            node_id=server.node_id,
        )
        result = installer.install(job.mc_version, job.pack_type, job.selection, job.target_world,
                                   user_agent=user_agent, user=getattr(request.state, "user", None))
    except DatapackInstallerError as e:
        return error_response(e, "installing packs")

    return {"success": result.success, "message": result.message}
