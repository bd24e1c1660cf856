from object_editor import __version__

__all__ = ["__version__"]
