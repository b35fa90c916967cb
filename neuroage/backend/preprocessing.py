"""
Image preprocessing module.
Bias correction, denoising and intensity matching of structural MRI volumes.
"""

from typing import Optional

import ants
import antspynet


MATCHING_TYPES = ("regression", "histogram")


class PreprocessingError(Exception):
    """Custom exception for preprocessing errors."""
    pass


def validate_matching_type(matching_type: str) -> str:
    """
    Check that an intensity matching mode is supported.

    Args:
        matching_type: Requested matching mode

    Returns:
        str: The validated matching mode

    Raises:
        PreprocessingError: If the mode is not one of MATCHING_TYPES
    """
    if matching_type not in MATCHING_TYPES:
        raise PreprocessingError(
            f"Unrecognized match type = {matching_type}. "
            f"Expected one of: {', '.join(MATCHING_TYPES)}"
        )
    return matching_type


def preprocess_image(
    image: ants.ANTsImage,
    mask: Optional[ants.ANTsImage] = None,
    do_bias_correction: bool = True,
    do_denoising: bool = True,
    reference_image: Optional[ants.ANTsImage] = None,
    matching_type: str = "regression",
    verbose: bool = True
) -> ants.ANTsImage:
    """
    Preprocess a structural image.

    Steps, in order and each optional:
    1. N4 bias field correction
    2. Denoising
    3. Intensity matching to ``reference_image`` (regression or histogram)

    Bias correction and denoising are restricted to ``mask`` when one is given.

    Args:
        image: Input image
        mask: Optional mask restricting bias correction and denoising
        do_bias_correction: Run N4 bias field correction
        do_denoising: Run denoising
        reference_image: Intensity matching target; matching is skipped if None
        matching_type: "regression" or "histogram"
        verbose: Print progress messages

    Returns:
        ants.ANTsImage: Preprocessed image (``image`` itself if no step ran)

    Raises:
        PreprocessingError: If matching_type is unrecognized
    """
    validate_matching_type(matching_type)

    preprocessed_image = image

    if do_bias_correction:
        if verbose:
            print("Preprocessing:  bias correction.")
        preprocessed_image = ants.n4_bias_field_correction(
            preprocessed_image,
            mask=mask,
            shrink_factor=4,
            verbose=verbose
        )

    if do_denoising:
        if verbose:
            print("Preprocessing:  denoising.")
        preprocessed_image = ants.denoise_image(
            preprocessed_image,
            mask=mask,
            shrink_factor=1,
            v=int(verbose)
        )

    if reference_image is not None:
        if verbose:
            print("Preprocessing:  intensity matching.")
        if matching_type == "regression":
            preprocessed_image = antspynet.utilities.regression_match_image(
                preprocessed_image, reference_image
            )
        else:
            preprocessed_image = ants.histogram_match_image(
                preprocessed_image, reference_image
            )

    return preprocessed_image
