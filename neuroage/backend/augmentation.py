"""
Data augmentation for brain age prediction.

Each subject is expanded into a batch of replicas. A replica pairs a randomly
affine-jittered copy of the subsampled image with a randomly positioned
full-resolution patch. Both carry two channels:

    channel 0: normalized intensity
    channel 1: difference from the population (MNI) average
"""

from typing import Callable, List, Optional, Sequence, Tuple

import ants
import antspynet
import numpy as np

from ..config import CHANNEL_SIZE, IMAGE_OFFSET, PATCH_SIZE


# (image_subsampled, image_subsampled_difference, number_of_replicas, affine_std)
# -> list of [transformed_image, transformed_difference]
RandomTransformer = Callable[[ants.ANTsImage, ants.ANTsImage, int, float], List[List[ants.ANTsImage]]]


def random_affine_replicas(
    image_subsampled: ants.ANTsImage,
    image_subsampled_difference: ants.ANTsImage,
    number_of_replicas: int,
    affine_std: float
) -> List[List[ants.ANTsImage]]:
    """Apply one random affine transform per replica to the image/difference pair."""
    simulated = antspynet.utilities.randomly_transform_image_data(
        image_subsampled,
        [[image_subsampled, image_subsampled_difference]],
        number_of_simulations=number_of_replicas,
        transform_type="affine",
        sd_affine=affine_std,
        input_image_interpolator="linear"
    )
    return simulated['simulated_images']


def sample_patch_corner(
    image_dimensions: Sequence[int],
    patch_size: int = PATCH_SIZE,
    offset: int = IMAGE_OFFSET,
    rng: Optional[np.random.Generator] = None
) -> np.ndarray:
    """
    Draw the lower corner of a cubic crop.

    Each coordinate is uniform over [offset, dim - patch_size - offset], both
    ends inclusive.

    Args:
        image_dimensions: Shape of the image being cropped
        patch_size: Edge length of the crop in voxels
        offset: Margin kept free at every border
        rng: Random generator

    Returns:
        np.ndarray: Lower corner indices, one per axis

    Raises:
        ValueError: If the image is too small for the patch and margin
    """
    if rng is None:
        rng = np.random.default_rng()

    upper_bounds = [int(d) - patch_size - offset for d in image_dimensions]
    if any(upper < offset for upper in upper_bounds):
        raise ValueError(
            f"Image of size {tuple(image_dimensions)} is too small for a "
            f"{patch_size}^3 patch with a {offset} voxel margin"
        )

    return np.array([rng.integers(offset, upper, endpoint=True) for upper in upper_bounds])


def crop_patch(array: np.ndarray, lower_indices: Sequence[int], patch_size: int = PATCH_SIZE) -> np.ndarray:
    """Crop a cube of edge ``patch_size`` starting at ``lower_indices``."""
    slices = tuple(slice(int(lower), int(lower) + patch_size) for lower in lower_indices)
    return array[slices]


def brain_age_data_augmentation(
    image: ants.ANTsImage,
    image_subsampled: ants.ANTsImage,
    mni_average: ants.ANTsImage,
    mni_average_subsampled: ants.ANTsImage,
    patch_size: int = PATCH_SIZE,
    batch_size: int = 1,
    affine_std: float = 0.01,
    rng: Optional[np.random.Generator] = None,
    random_transformer: Optional[RandomTransformer] = None,
    verbose: bool = True
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build the network inputs for one subject.

    Args:
        image: Subject image warped to the full template grid
        image_subsampled: Subject image warped to the subsampled template grid
        mni_average: Population average on the full grid
        mni_average_subsampled: Population average on the subsampled grid
        patch_size: Edge length of the full-resolution patch
        batch_size: Number of replicas
        affine_std: Standard deviation of the random affine parameters
        rng: Random generator for the patch positions
        random_transformer: Replaces the affine augmentation (see RandomTransformer)
        verbose: Print progress messages

    Returns:
        Tuple[np.ndarray, np.ndarray]: (image_array, patch_array) with shapes
        (batch_size, *image_subsampled.shape, 2) and
        (batch_size, patch_size, patch_size, patch_size, 2)
    """
    if rng is None:
        rng = np.random.default_rng()
    if random_transformer is None:
        random_transformer = random_affine_replicas

    # The averages are defined on the template grid; take the warped image geometry.
    mni_average = ants.copy_image_info(image, mni_average.clone())
    mni_average_subsampled = ants.copy_image_info(image_subsampled, mni_average_subsampled.clone())

    image_difference = image - mni_average
    image_subsampled_difference = image_subsampled - mni_average_subsampled

    image_dimensions = image.shape
    image_array = np.zeros((batch_size, *image_subsampled.shape, CHANNEL_SIZE), dtype=np.float32)
    patch_array = np.zeros((batch_size, patch_size, patch_size, patch_size, CHANNEL_SIZE), dtype=np.float32)

    if verbose:
        print(f"Data augmentation:  generating {batch_size} replicas.")

    random_images = random_transformer(image_subsampled, image_subsampled_difference, batch_size, affine_std)

    full_image = image.numpy()
    full_difference = image_difference.numpy()

    for i in range(batch_size):
        lower_indices = sample_patch_corner(image_dimensions, patch_size, IMAGE_OFFSET, rng)

        transformed_image, transformed_difference = random_images[i][0], random_images[i][1]
        image_array[i, ..., 0] = ants.iMath(transformed_image, "Normalize").numpy()
        image_array[i, ..., 1] = transformed_difference.numpy()
        patch_array[i, ..., 0] = crop_patch(full_image, lower_indices, patch_size)
        patch_array[i, ..., 1] = crop_patch(full_difference, lower_indices, patch_size)

    return image_array, patch_array
