"""
Validity Core Library
=====================

Content validity (Aiken's V) and psychometric properties of Likert-type
survey instruments.

Modules:
    config      - Global configuration parameters
    data        - Data loading, reshaping, sample splitting, standardization
    aiken       - Aiken's V estimates, confidence intervals, item tables
    efa         - Factorability, factor retention, factor extraction
    reliability - Cronbach's alpha, CR/AVE, HTMT, Fornell-Larcker
    stats       - Item descriptives, response frequencies, normality
    viz         - Visualization utilities
    output      - Output naming and saving
"""

from . import config
from . import data
from . import aiken
from . import efa
from . import reliability
from . import stats
from . import viz
from . import output

from .aiken import InvalidInput

__version__ = '1.0.0'

__all__ = [
    'config',
    'data',
    'aiken',
    'efa',
    'reliability',
    'stats',
    'viz',
    'output',
    'InvalidInput',
]
