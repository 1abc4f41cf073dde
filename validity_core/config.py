"""
Global Configuration for Instrument Validation
===============================================

Central location for default parameters used across all analysis scripts.
Override these in individual scripts or per call as needed.
"""

# =============================================================================
# DATA CONFIGURATION
# =============================================================================
DEFAULT_RATINGS_FILE = 'data/data_Aiken_ChatGPT.csv'
DEFAULT_RESPONSES_FILE = 'data/data_survey_responses.csv'

DIMENSION_COL = 'dimension'

# Item code prefixes, one per hypothesized factor
DEFAULT_ITEM_PREFIXES = ['CT', 'EC', 'CC', 'AC', 'HE']

# Respondents kept for the psychometric analysis
DEFAULT_ROW_FILTERS = {'consentimiento': 'SI', 'usa_ChatGPT': 'SI'}

# Total-score outlier screening: median +/- HAMPEL_N_MAD * MAD
HAMPEL_N_MAD = 3

# =============================================================================
# AIKEN'S V CONFIGURATION
# =============================================================================
DEFAULT_K = 4               # Ordinal scale points (4-point Likert)
DEFAULT_CONFIDENCE = 0.95   # Two-sided CI coverage
ROUND_DECIMALS = 3          # Presentation rounding only

# Reference lines for content validity decisions
AIKEN_MIN_ACCEPTABLE = 0.5
AIKEN_GOOD = 0.8

# =============================================================================
# EFA CONFIGURATION
# =============================================================================
DEFAULT_EFA_SAMPLE_SIZE = 220   # Remaining cases are held out for CFA
RANDOM_SEED = 222

DEFAULT_ROTATION = 'oblimin'
DEFAULT_METHOD = 'minres'
LOADING_THRESHOLD = 0.40  # Threshold for salient factor loadings

PARALLEL_ITERATIONS = 100

NORMALITY_ALPHA = 0.05    # Significance level for normality tests

# =============================================================================
# RELIABILITY / VALIDITY CONFIGURATION
# =============================================================================
HTMT_STRICT = 0.85
HTMT_LIBERAL = 0.90
AVE_THRESHOLD = 0.50
CR_THRESHOLD = 0.70

# =============================================================================
# OUTPUT CONFIGURATION
# =============================================================================
DEFAULT_OUTPUT_BASE = 'outputs'
DEFAULT_DPI = 150

# =============================================================================
# INTERPRETATION LABELS
# =============================================================================
KMO_THRESHOLDS = {
    0.9: "Marvelous",
    0.8: "Meritorious",
    0.7: "Middling",
    0.6: "Mediocre",
    0.5: "Miserable",
    0.0: "Unacceptable",
}

ALPHA_THRESHOLDS = {
    0.9: "Excellent",
    0.8: "Good",
    0.7: "Acceptable",
    0.6: "Questionable",
    0.5: "Poor",
}


def get_kmo_label(kmo_value: float) -> str:
    """Return human-readable KMO interpretation."""
    for threshold, label in sorted(KMO_THRESHOLDS.items(), reverse=True):
        if kmo_value >= threshold:
            return label
    return "Unacceptable"


def get_alpha_label(alpha_value: float) -> str:
    """Return human-readable interpretation of a reliability coefficient."""
    for threshold, label in sorted(ALPHA_THRESHOLDS.items(), reverse=True):
        if alpha_value >= threshold:
            return label
    return "Unacceptable"
