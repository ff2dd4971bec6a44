from .filter_model import _FilterModel

__all__ = ["_FilterModel"]
