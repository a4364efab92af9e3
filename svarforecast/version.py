# svarforecast/version.py
"""
SVAR Forecast Toolbox Version Information

This module contains version information and package metadata. The toolbox
follows semantic versioning (MAJOR.MINOR.PATCH).
"""

from typing import Any, Dict

# Version components
VERSION_MAJOR = 0
VERSION_MINOR = 3
VERSION_PATCH = 0

# Full version string
__version__ = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"

# Package metadata
__title__ = "SVAR Forecast Toolbox"
__description__ = "Posterior predictive forecasting for heteroskedastic structural VARs"
__license__ = "MIT"

# Python version requirements
__python_requires__ = ">=3.10"

# Package dependencies
__dependencies__ = {
    "numpy": ">=1.26.0",
    "scipy": ">=1.11.3",
    "pandas": ">=2.1.1",
    "numba": ">=0.58.0",
}


def get_version_info() -> Dict[str, Any]:
    """
    Get version information about the SVAR Forecast Toolbox.

    Returns:
        Dict containing the version string, its components, the supported
        Python versions and the runtime dependencies.
    """
    return {
        "version": __version__,
        "major": VERSION_MAJOR,
        "minor": VERSION_MINOR,
        "patch": VERSION_PATCH,
        "python_requires": __python_requires__,
        "dependencies": __dependencies__,
        "license": __license__
    }
