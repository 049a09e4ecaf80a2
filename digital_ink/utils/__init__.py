"""
Utility helpers: logging setup and application directories.
"""
from .logging_config import LoggingConfig
from .resource_loader import get_app_data_dir, get_log_dir

__all__ = ['LoggingConfig', 'get_app_data_dir', 'get_log_dir']
