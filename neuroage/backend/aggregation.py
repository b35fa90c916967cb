"""
Aggregation of replica predictions into per-subject results.
"""

from typing import List, Sequence

import numpy as np
import pandas as pd

from .models import SubjectPrediction


NO_OUTPUT_NAMES = ("None", "none")

RESULT_COLUMNS = ["FileName", "Age", "Gender"]
STD_COLUMNS = ["AgeStd", "GenderStd"]


def nan_mean(values: Sequence[float]) -> float:
    """Mean ignoring missing values; NaN if nothing is left."""
    values = np.asarray(values, dtype=float).ravel()
    values = values[~np.isnan(values)]
    if values.size == 0:
        return float("nan")
    return float(values.mean())


def nan_std(values: Sequence[float]) -> float:
    """Sample standard deviation ignoring missing values; NaN below two values."""
    values = np.asarray(values, dtype=float).ravel()
    values = values[~np.isnan(values)]
    if values.size < 2:
        return float("nan")
    return float(values.std(ddof=1))


def summarize_replicas(
    file_name: str,
    age_predictions: np.ndarray,
    gender_predictions: np.ndarray
) -> SubjectPrediction:
    """
    Collapse the replica predictions of one subject.

    Args:
        file_name: Input image path
        age_predictions: Age output, one value per replica
        gender_predictions: Gender output, one value per replica

    Returns:
        SubjectPrediction: Mean and standard deviation of age and gender
    """
    age_predictions = np.asarray(age_predictions, dtype=float).ravel()
    gender_predictions = np.asarray(gender_predictions, dtype=float).ravel()

    return SubjectPrediction(
        file_name=file_name,
        age_mean=nan_mean(age_predictions),
        age_std=nan_std(age_predictions),
        gender_mean=nan_mean(gender_predictions),
        gender_std=nan_std(gender_predictions),
        number_of_samples=age_predictions.size,
    )


def build_results_table(records: List[SubjectPrediction], include_std: bool = False) -> pd.DataFrame:
    """
    Assemble the output table, one row per subject in input order.

    Args:
        records: Per-subject predictions
        include_std: Add the AgeStd and GenderStd columns

    Returns:
        pd.DataFrame: Columns FileName, Age, Gender (and optionally the std columns)
    """
    columns = RESULT_COLUMNS + (STD_COLUMNS if include_std else [])
    rows = [
        {
            "FileName": record.file_name,
            "Age": record.age_mean,
            "Gender": record.gender_mean,
            "AgeStd": record.age_std,
            "GenderStd": record.gender_std,
        }
        for record in records
    ]
    return pd.DataFrame(rows, columns=columns)


def write_results(table: pd.DataFrame, output_csv_file: str) -> None:
    """
    Write the table to CSV, or print it when the output name is None/none.

    Args:
        table: Results table
        output_csv_file: Destination path, or "None"/"none" to print instead
    """
    if output_csv_file in NO_OUTPUT_NAMES:
        print(table)
    else:
        table.to_csv(output_csv_file, index=False)
