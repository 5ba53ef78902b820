# Preset catalog endpoint - lists the available compression resolutions

from fastapi import APIRouter

from reelpress.services.presets import DEFAULT_PRESET, list_presets

router = APIRouter()


@router.get("/presets")
def get_presets():
    """
    List the compression presets a job can be created with.
    """
    return {"default": DEFAULT_PRESET, "presets": list_presets()}
