# Connectivity check endpoint - answers "Pong" with the server version

from fastapi import APIRouter

from reelpress import __version__

router = APIRouter()


@router.get("/ping")
async def ping():
    return {"status": "online", "message": "Pong", "version": __version__}
