"""
Asset client for NeuroAge.
Fetches the template images used by the brain age pipeline and caches them on disk.
"""

import requests
from pathlib import Path
from typing import Optional

from .config import ASSET_URLS, get_cache_dir, get_download_timeout


CHUNK_SIZE = 1024 * 1024


class AssetDownloadError(Exception):
    """Custom exception for asset download errors."""
    pass


def fetch_asset(url: str, target_path: Path, verbose: bool = True) -> Path:
    """
    Download a file unless it already exists locally.

    The payload is streamed to a sibling ``.part`` file which is renamed only
    once the transfer completes, so an interrupted download is never reused.

    Args:
        url: Remote location of the file
        target_path: Local path the file is cached at
        verbose: Print progress messages

    Returns:
        Path: Path to the cached file

    Raises:
        AssetDownloadError: If the download fails
    """
    target_path = Path(target_path)

    if target_path.exists():
        return target_path

    if verbose:
        print(f"Downloading {target_path.name}...")

    partial_path = target_path.with_name(target_path.name + ".part")

    try:
        with requests.get(url, stream=True, timeout=get_download_timeout()) as response:
            response.raise_for_status()

            with open(partial_path, 'wb') as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)

        partial_path.replace(target_path)

    except requests.exceptions.RequestException as e:
        if partial_path.exists():
            partial_path.unlink()
        raise AssetDownloadError(f"Download of {url} failed: {str(e)}") from e
    except OSError as e:
        if partial_path.exists():
            partial_path.unlink()
        raise AssetDownloadError(f"Could not write {target_path}: {str(e)}") from e

    if verbose:
        size_mb = target_path.stat().st_size / (1024 * 1024)
        print(f"✓ Downloaded {target_path.name} ({size_mb:.2f} MB)")

    return target_path


def get_asset(file_name: str, cache_dir: Optional[str] = None, verbose: bool = True) -> Path:
    """
    Return the local path of a named asset, downloading it on first use.

    Args:
        file_name: One of the file names in ``config.ASSET_URLS``
        cache_dir: Optional cache directory (defaults to config)
        verbose: Print progress messages

    Returns:
        Path: Path to the cached asset

    Raises:
        AssetDownloadError: If the asset is unknown or cannot be fetched
    """
    if file_name not in ASSET_URLS:
        raise AssetDownloadError(f"Unknown asset: {file_name}")

    target_path = get_cache_dir(cache_dir) / file_name
    return fetch_asset(ASSET_URLS[file_name], target_path, verbose=verbose)
