# magick_api/utils/paths.py
import glob
import os
import uuid

def ensure_dir(path: str):
    os.makedirs(path, mode=0o777, exist_ok=True)

def unique_path(directory: str, extension: str) -> str:
    return os.path.join(directory, f"{uuid.uuid4()}.{extension}")

def sibling_path(path: str, suffix: str, extension: str) -> str:
    """``/tmp/<id>.png`` -> ``/tmp/<id>_<suffix>.<extension>``"""
    base, _ = os.path.splitext(path)
    return f"{base}_{suffix}.{extension}"

def scene_paths(path: str):
    """Scene files ImageMagick writes as ``<base>-<n><ext>`` when it splits frames."""
    base, ext = os.path.splitext(path)
    return sorted(glob.glob(f"{glob.escape(base)}-[0-9]*{glob.escape(ext)}"))
