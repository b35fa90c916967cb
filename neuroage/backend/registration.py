"""
Subject to template alignment.
Brain extraction, affine registration and warping of a subject image into
the brain age template space.
"""

from dataclasses import dataclass

import ants
import antspynet

from .template import TemplateBundle


class RegistrationError(Exception):
    """Custom exception for brain extraction and registration errors."""
    pass


@dataclass
class WarpedSubject:
    """Subject image resampled into template space at both resolutions."""
    image: ants.ANTsImage
    image_subsampled: ants.ANTsImage
    fwdtransforms: list


def extract_normalized_brain(image: ants.ANTsImage, verbose: bool = True) -> ants.ANTsImage:
    """
    Mask an image with its brain probability and normalize intensities to [0, 1].

    Args:
        image: Bias corrected T1-weighted image
        verbose: Print progress messages

    Returns:
        ants.ANTsImage: Normalized brain image
    """
    if verbose:
        print("Brain extraction.")
    probability_brain_mask = antspynet.brain_extraction(image, modality="t1", verbose=verbose)
    return ants.iMath(probability_brain_mask * image, "Normalize")


def register_to_template(
    image: ants.ANTsImage,
    template: TemplateBundle,
    verbose: bool = True
) -> WarpedSubject:
    """
    Affinely register a preprocessed subject image to the template.

    The transform is estimated between the normalized brains and applied to
    the whole (unmasked) image, once on the full template grid and once on
    the subsampled grid. Both warped images are intensity normalized.

    Args:
        image: Preprocessed subject image
        template: Prepared template images
        verbose: Print progress messages

    Returns:
        WarpedSubject: Warped images and the forward transforms

    Raises:
        RegistrationError: If brain extraction or registration fails
    """
    try:
        brain_normalized = extract_normalized_brain(image, verbose=verbose)

        if verbose:
            print("Registration to template.")
        registration = ants.registration(
            fixed=template.template_brain_normalized,
            moving=brain_normalized,
            type_of_transform="Affine",
            verbose=verbose
        )
        fwdtransforms = registration['fwdtransforms']

        image_warped = ants.apply_transforms(
            fixed=template.template,
            moving=image,
            transformlist=fwdtransforms,
            interpolator="linear"
        )
        image_warped_subsampled = ants.apply_transforms(
            fixed=template.template_subsampled,
            moving=image,
            transformlist=fwdtransforms,
            interpolator="linear"
        )

    except (RuntimeError, ValueError) as e:
        raise RegistrationError(f"Registration to template failed: {str(e)}") from e

    return WarpedSubject(
        image=ants.iMath(image_warped, "Normalize"),
        image_subsampled=ants.iMath(image_warped_subsampled, "Normalize"),
        fwdtransforms=fwdtransforms,
    )
