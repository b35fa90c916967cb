"""
Template preparation for brain age prediction.
Downloads the brain age template and population averages, and builds the
registration target once per process.
"""

from dataclasses import dataclass
from typing import Optional

import ants
import antspynet

from ..asset_client import get_asset
from ..config import (
    TARGET_TEMPLATE_DIMENSION,
    TARGET_TEMPLATE_SUBSAMPLED_DIMENSION,
    TEMPLATE_FILE,
    MNI_AVERAGE_FILE,
    MNI_AVERAGE_SUBSAMPLED_FILE,
)


@dataclass
class TemplateBundle:
    """Template space images shared by every subject."""
    template: ants.ANTsImage
    template_subsampled: ants.ANTsImage
    template_brain_normalized: ants.ANTsImage
    mni_average: ants.ANTsImage
    mni_average_subsampled: ants.ANTsImage


def prepare_template(cache_dir: Optional[str] = None, verbose: bool = True) -> TemplateBundle:
    """
    Load and prepare the brain age template.

    The template is resampled to TARGET_TEMPLATE_DIMENSION and to half that
    grid, brain extracted, and the masked brain intensity normalized to serve
    as the fixed image for registration.

    Args:
        cache_dir: Directory where downloaded assets are cached
        verbose: Print progress messages

    Returns:
        TemplateBundle: Prepared template images

    Raises:
        AssetDownloadError: If an asset cannot be downloaded
    """
    if verbose:
        print("Brain age:  preparing template.")

    template_file = get_asset(TEMPLATE_FILE, cache_dir, verbose=verbose)
    mni_average_file = get_asset(MNI_AVERAGE_FILE, cache_dir, verbose=verbose)
    mni_average_subsampled_file = get_asset(MNI_AVERAGE_SUBSAMPLED_FILE, cache_dir, verbose=verbose)

    original_template = ants.image_read(str(template_file))
    template = ants.resample_image(
        original_template,
        TARGET_TEMPLATE_DIMENSION,
        use_voxels=True,
        interp_type=0
    )

    template_probability_mask = antspynet.brain_extraction(template, modality="t1", verbose=verbose)
    template_brain_normalized = ants.iMath(template * template_probability_mask, "Normalize")

    template_subsampled = ants.resample_image(
        template,
        TARGET_TEMPLATE_SUBSAMPLED_DIMENSION,
        use_voxels=True,
        interp_type=0
    )

    if verbose:
        print(f"✓ Template ready: {template.shape} / {template_subsampled.shape}")

    return TemplateBundle(
        template=template,
        template_subsampled=template_subsampled,
        template_brain_normalized=template_brain_normalized,
        mni_average=ants.image_read(str(mni_average_file)),
        mni_average_subsampled=ants.image_read(str(mni_average_subsampled_file)),
    )
