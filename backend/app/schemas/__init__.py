from backend.app.schemas.common import ApiResponse
from backend.app.schemas.feature import FeatureCreate, FeatureResponse

__all__ = [
    "ApiResponse",
    "FeatureCreate",
    "FeatureResponse",
]
