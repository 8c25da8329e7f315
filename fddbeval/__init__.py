"""Face-detection evaluation: region masks, Hungarian matching and ROC curves."""

__version__ = "0.1.0"
__all__ = ["__version__"]