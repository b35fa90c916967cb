"""
Pydantic models for brain age prediction results.
"""

from pydantic import BaseModel, Field


class SubjectPrediction(BaseModel):
    """Brain age and gender prediction for one input image."""
    file_name: str = Field(..., description="Input image path as given on the command line")
    age_mean: float = Field(..., description="Mean predicted age across replicas (years)")
    age_std: float = Field(..., description="Sample standard deviation of the predicted age")
    gender_mean: float = Field(..., description="Mean predicted gender probability")
    gender_std: float = Field(..., description="Sample standard deviation of the gender probability")
    number_of_samples: int = Field(..., ge=1, description="Number of augmented replicas")

    class Config:
        json_schema_extra = {
            "example": {
                "file_name": "sub-01_T1w.nii.gz",
                "age_mean": 52.3,
                "age_std": 1.8,
                "gender_mean": 0.87,
                "gender_std": 0.04,
                "number_of_samples": 10
            }
        }


def format_summary(prediction: SubjectPrediction) -> str:
    """Human-readable one-line summary of a subject prediction."""
    return (
        f"Age {prediction.age_mean:.2f} ± {prediction.age_std:.2f} years, "
        f"gender {prediction.gender_mean:.3f} ± {prediction.gender_std:.3f} "
        f"({prediction.number_of_samples} samples)"
    )
