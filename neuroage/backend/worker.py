"""
Brain age pipeline orchestration.
Runs preprocessing, registration, augmentation, prediction and aggregation
for each input image, one subject at a time.
"""

from typing import List, Optional, Sequence

import ants
import numpy as np

from ..config import AFFINE_STD, NUMBER_OF_SAMPLES_PER_SUBJECT, PATCH_SIZE
from .aggregation import summarize_replicas
from .augmentation import RandomTransformer, brain_age_data_augmentation
from .models import SubjectPrediction, format_summary
from .preprocessing import preprocess_image
from .registration import register_to_template
from .template import TemplateBundle


def _banner(title: str, verbose: bool):
    if verbose:
        print(f"{'='*70}")
        print(title)
        print(f"{'='*70}\n")


def process_subject(
    file_name: str,
    template: TemplateBundle,
    predictor,
    number_of_samples: int = NUMBER_OF_SAMPLES_PER_SUBJECT,
    affine_std: float = AFFINE_STD,
    rng: Optional[np.random.Generator] = None,
    random_transformer: Optional[RandomTransformer] = None,
    verbose: bool = True
) -> SubjectPrediction:
    """
    Predict brain age and gender for one T1-weighted image.

    Pipeline stages:
    1. Read the image
    2. N4 bias correction (no denoising)
    3. Brain extraction and affine registration to the template
    4. Augmentation into ``number_of_samples`` replicas
    5. Prediction and averaging over replicas

    Args:
        file_name: Path to the input image
        template: Prepared template images
        predictor: Object with ``predict(image_array, patch_array, verbose)``
            returning (site, age, gender)
        number_of_samples: Augmented replicas per subject
        affine_std: Standard deviation of the random affine jitter
        rng: Random generator for patch positions
        random_transformer: Replaces the affine augmentation
        verbose: Print progress messages

    Returns:
        SubjectPrediction: Averaged prediction for the subject
    """
    _banner(f"STAGE 1/5: Reading {file_name}", verbose)
    input_image = ants.image_read(str(file_name))

    _banner("STAGE 2/5: Preprocessing", verbose)
    if verbose:
        print(f"Preprocessing input image {file_name}.")
    input_image = preprocess_image(input_image, do_denoising=False, verbose=verbose)

    _banner("STAGE 3/5: Brain Extraction & Registration", verbose)
    warped = register_to_template(input_image, template, verbose=verbose)

    _banner("STAGE 4/5: Data Augmentation", verbose)
    image_array, patch_array = brain_age_data_augmentation(
        warped.image,
        warped.image_subsampled,
        template.mni_average,
        template.mni_average_subsampled,
        patch_size=PATCH_SIZE,
        batch_size=number_of_samples,
        affine_std=affine_std,
        rng=rng,
        random_transformer=random_transformer,
        verbose=verbose
    )

    _banner("STAGE 5/5: Brain Age Prediction", verbose)
    _, age_predictions, gender_predictions = predictor.predict(image_array, patch_array, verbose=verbose)

    prediction = summarize_replicas(file_name, age_predictions, gender_predictions)

    if verbose:
        print(f"✓ {file_name}: {format_summary(prediction)}\n")

    return prediction


def run_batch(
    file_names: Sequence[str],
    template: TemplateBundle,
    predictor,
    number_of_samples: int = NUMBER_OF_SAMPLES_PER_SUBJECT,
    affine_std: float = AFFINE_STD,
    rng: Optional[np.random.Generator] = None,
    random_transformer: Optional[RandomTransformer] = None,
    verbose: bool = True
) -> List[SubjectPrediction]:
    """
    Process every input image in order.

    Any error aborts the whole batch; no partial results are returned.

    Returns:
        List[SubjectPrediction]: One prediction per input, in input order
    """
    if rng is None:
        rng = np.random.default_rng()

    results = []

    for index, file_name in enumerate(file_names, start=1):
        if verbose:
            print(f"\nSubject {index}/{len(file_names)}: {file_name}\n")

        try:
            prediction = process_subject(
                file_name,
                template,
                predictor,
                number_of_samples=number_of_samples,
                affine_std=affine_std,
                rng=rng,
                random_transformer=random_transformer,
                verbose=verbose
            )
        except Exception as e:
            print(f"\n{'='*70}")
            print("PIPELINE FAILED")
            print(f"Input: {file_name}")
            print(f"Error: {str(e)}")
            print(f"{'='*70}\n")
            raise

        results.append(prediction)

    return results
