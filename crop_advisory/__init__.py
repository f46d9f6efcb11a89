"""
Crop Advisory System - weather-driven agronomic recommendations
Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "Crop Advisory Team"

# Core modules
from . import config
from . import crops
from . import weather
from . import advisory
from . import orchestrator

__all__ = ['config', 'crops', 'weather', 'advisory', 'orchestrator']
