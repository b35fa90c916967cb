"""
Brain age and gender prediction wrapper for the pretrained ANTsXNet model.
A 3D ResNet with site, age and gender heads, fed with the augmented
subsampled image and full-resolution patch batches.
"""

from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import tensorflow as tf
import antspynet

from ..config import (
    CHANNEL_SIZE,
    CLASSES,
    PATCH_SIZE,
    PRETRAINED_NETWORK_ID,
    TARGET_TEMPLATE_SUBSAMPLED_DIMENSION,
    WEIGHTS_FILE,
    get_cache_dir,
)


class BrainAgePredictionError(Exception):
    """Custom exception for brain age prediction errors."""
    pass


def build_brain_age_model() -> tf.keras.Model:
    """
    Create the dual-input, triple-output brain age network.

    Inputs are the subsampled image batch and the full-resolution patch batch;
    outputs are site scores, age and gender probability.
    """
    input_image_size = (*TARGET_TEMPLATE_SUBSAMPLED_DIMENSION, CHANNEL_SIZE)
    number_of_site_units = CHANNEL_SIZE * len(CLASSES)

    resnet_model = antspynet.create_resnet_model_3d(
        input_image_size,
        number_of_classification_labels=1000,
        layers=(1, 2, 3, 4),
        residual_block_schedule=(3, 4, 6, 3),
        lowest_resolution=64,
        cardinality=64,
        mode="classification"
    )
    penultimate_layer = resnet_model.layers[-2].output

    site_layer = tf.keras.layers.Dense(units=number_of_site_units, activation="sigmoid")(penultimate_layer)
    age_layer = tf.keras.layers.Dense(units=1, activation="linear")(penultimate_layer)
    gender_layer = tf.keras.layers.Dense(units=1, activation="sigmoid")(penultimate_layer)

    input_patch = tf.keras.Input((PATCH_SIZE, PATCH_SIZE, PATCH_SIZE, CHANNEL_SIZE))

    return tf.keras.Model(
        inputs=[resnet_model.input, input_patch],
        outputs=[site_layer, age_layer, gender_layer]
    )


class BrainAgePredictor:
    """
    Singleton class for brain age prediction.

    Builds the model and loads the pretrained weights once; every subject
    reuses the same instance.
    """

    _instance: Optional['BrainAgePredictor'] = None
    _model = None

    def __new__(cls, cache_dir: Optional[str] = None, verbose: bool = True):
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._initialize_model(cache_dir, verbose)
            cls._instance = instance
        return cls._instance

    def _initialize_model(self, cache_dir: Optional[str], verbose: bool):
        """
        Build the network and load the pretrained weights.

        Raises:
            BrainAgePredictionError: If the weights cannot be obtained or loaded
        """
        if verbose:
            print("Initializing Brain Age Predictor...")

        self._configure_tensorflow(verbose)

        self._model = build_brain_age_model()

        weights_file = Path(get_cache_dir(cache_dir)) / WEIGHTS_FILE

        try:
            if not weights_file.exists():
                if verbose:
                    print("Brain age:  downloading model weights file.")
                weights_file = Path(antspynet.utilities.get_pretrained_network(
                    PRETRAINED_NETWORK_ID, target_file_name=str(weights_file)
                ))

            if verbose:
                print(f"Loading model weights from {weights_file.name}...")
            self._model.load_weights(str(weights_file))

        except (OSError, ValueError) as e:
            raise BrainAgePredictionError(f"Could not load model weights {weights_file}: {str(e)}") from e

        if verbose:
            print("✓ Brain Age Predictor initialized successfully!")

    def _configure_tensorflow(self, verbose: bool):
        """Enable GPU memory growth when GPUs are present."""
        physical_devices = tf.config.list_physical_devices('GPU')

        if physical_devices:
            try:
                for device in physical_devices:
                    tf.config.experimental.set_memory_growth(device, True)
                if verbose:
                    print(f"✓ Configured {len(physical_devices)} GPU(s) with memory growth")
            except RuntimeError as e:
                print(f"⚠ Warning: Could not configure GPU memory growth: {e}")
        elif verbose:
            print("Note: No GPU detected. Using CPU for inference.")

    def predict(
        self,
        image_array: np.ndarray,
        patch_array: np.ndarray,
        verbose: bool = True
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Run one forward pass over a batch of augmented replicas.

        Args:
            image_array: Subsampled image batch (batch, 96, 112, 96, 2)
            patch_array: Patch batch (batch, 96, 96, 96, 2)
            verbose: Show the Keras progress bar

        Returns:
            Tuple[np.ndarray, np.ndarray, np.ndarray]: (site, age, gender)
            predictions, one row per replica

        Raises:
            BrainAgePredictionError: If the inputs do not match the network
        """
        if image_array.shape[0] != patch_array.shape[0]:
            raise BrainAgePredictionError(
                f"Batch size mismatch: {image_array.shape[0]} images, {patch_array.shape[0]} patches"
            )

        try:
            site, age, gender = self._model.predict([image_array, patch_array], verbose=int(verbose))
        except ValueError as e:
            raise BrainAgePredictionError(f"Brain age prediction failed: {str(e)}") from e

        return np.asarray(site), np.asarray(age), np.asarray(gender)
