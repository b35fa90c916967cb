import os
from pathlib import Path
from typing import Optional
from dotenv import find_dotenv, load_dotenv

# Template geometry
TARGET_TEMPLATE_DIMENSION = (192, 224, 192)
TARGET_TEMPLATE_SUBSAMPLED_DIMENSION = tuple(d // 2 for d in TARGET_TEMPLATE_DIMENSION)

# Network input
CHANNEL_SIZE = 2
PATCH_SIZE = 96
IMAGE_OFFSET = 10
NUMBER_OF_SAMPLES_PER_SUBJECT = 10
AFFINE_STD = 0.1

CLASSES = ("Site", "Age", "Gender")

# Cached assets
TEMPLATE_FILE = "template_brainAge.nii.gz"
MNI_AVERAGE_FILE = "mniAverage.nii.gz"
MNI_AVERAGE_SUBSAMPLED_FILE = "mniAverageSubsampled.nii.gz"
WEIGHTS_FILE = "resNet4LayerLR64Card64b.h5"
PRETRAINED_NETWORK_ID = "brainAgeGender"

_ASSET_BASE_URL = "https://github.com/ANTsXNet/BrainAgeGender/blob/master/Data/Templates"
ASSET_URLS = {
    TEMPLATE_FILE: f"{_ASSET_BASE_URL}/{TEMPLATE_FILE}?raw=true",
    MNI_AVERAGE_FILE: f"{_ASSET_BASE_URL}/{MNI_AVERAGE_FILE}?raw=true",
    MNI_AVERAGE_SUBSAMPLED_FILE: f"{_ASSET_BASE_URL}/{MNI_AVERAGE_SUBSAMPLED_FILE}?raw=true",
}


def load_environment():
    """Read NEUROAGE_* overrides from a .env file into the environment."""
    load_dotenv(find_dotenv(usecwd=True))


def is_verbose() -> bool:
    return os.getenv("NEUROAGE_VERBOSE", "1") not in ("0", "false", "False", "no")


def get_cache_dir(cache_dir: Optional[str] = None) -> Path:
    """Resolve the asset cache directory (argument, then env, then cwd)."""
    if cache_dir:
        return Path(cache_dir)
    if os.getenv("NEUROAGE_CACHE_DIR"):
        return Path(os.getenv("NEUROAGE_CACHE_DIR"))
    return Path(os.getcwd())


def get_download_timeout() -> Optional[float]:
    """Download timeout in seconds, or None to wait indefinitely."""
    timeout = os.getenv("NEUROAGE_DOWNLOAD_TIMEOUT")
    if not timeout:
        return None
    return float(timeout)


def validate_config(cache_dir: Optional[str] = None) -> Path:
    """Validate the cache directory, raising error if it cannot be used."""
    path = get_cache_dir(cache_dir)
    if path.exists() and not path.is_dir():
        raise RuntimeError(f"Cache path is not a directory: {path}")
    path.mkdir(parents=True, exist_ok=True)
    if not os.access(path, os.W_OK):
        raise RuntimeError(f"Cache directory is not writable: {path}")
    return path
