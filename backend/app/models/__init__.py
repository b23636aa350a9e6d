from backend.app.models.feature import Feature, Vote

__all__ = [
    "Feature",
    "Vote",
]
