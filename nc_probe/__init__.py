import logging

# Route warnings through logging
logging.captureWarnings(True)

__version__ = "0.1.0"

# Relative imports are recommended in __init__.py
from . import errors
from .config import Options, load_options
from .coordinates import detect_coordinates
from .data_access import get_variable_data, get_variable_subset
from .loader import open_netcdf
from .models import serialize
from .session import Session

# What is allowed to be imported by
# from nc_probe import *
__all__ = ['errors', 'Options', 'load_options', 'detect_coordinates',
           'get_variable_data', 'get_variable_subset', 'open_netcdf',
           'serialize', 'Session']
