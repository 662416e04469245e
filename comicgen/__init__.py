# comicgen/__init__.py
from .config import config, load_config, Config
from .logger import get_logger
from .errors import ComicError, ConfigurationError, ImageGenerationError


__all__ = ["config",
           "load_config",
           "Config",
           "get_logger",
           "ComicError",
           "ConfigurationError",
           "ImageGenerationError",
           ]
