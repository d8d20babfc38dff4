"""
models/format_utils.py

SI-prefix parsing and formatting for branch values ("4.7k", "10mA", "1MEG").
"""
import math
import re

# Prefix symbol -> power of ten. 'u' stands in for 'µ'; 'MEG' is the SPICE spelling of mega.
SI_EXPONENTS = {
    'f': -15,
    'p': -12,
    'n': -9,
    'u': -6,
    'µ': -6,
    'm': -3,
    'k': 3,
    'M': 6,
    'MEG': 6,
    'G': 9,
    'T': 12,
}

# Display prefixes, largest first
_DISPLAY_PREFIXES = [
    (12, 'T'), (9, 'G'), (6, 'M'), (3, 'k'), (0, ''),
    (-3, 'm'), (-6, 'µ'), (-9, 'n'), (-12, 'p'), (-15, 'f'),
]

_VALUE_RE = re.compile(r'^([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*([a-zA-Zµ]*)$')


def _prefix_exponent(suffix: str) -> int:
    """Power of ten encoded by the start of a unit suffix ("kOhm" -> 3, "V" -> 0)."""
    if not suffix:
        return 0
    if suffix.upper().startswith('MEG'):
        return SI_EXPONENTS['MEG']
    return SI_EXPONENTS.get(suffix[0], 0)


def parse_value(s) -> float:
    """
    Parse a number with an optional SI prefix and unit.
    Examples: "10k" -> 10000.0, "25m" -> 0.025, "4.7MEG" -> 4.7e6, "10V" -> 10.0
    """
    if not isinstance(s, str):
        return float(s)

    match = _VALUE_RE.match(s.strip())
    if not match:
        raise ValueError(f"Invalid number format: {s}")

    number, suffix = match.groups()
    return float(number) * 10.0 ** _prefix_exponent(suffix)


def parse_value_or_nan(s) -> float:
    """Like parse_value, but returns NaN for anything that cannot be parsed."""
    try:
        return parse_value(s)
    except (ValueError, TypeError):
        return math.nan


def format_value(value: float, unit: str = "") -> str:
    """
    Format a float with the most appropriate SI prefix.
    Examples: 0.015 -> "15.00 m", 15000 -> "15 k"
    """
    if not math.isfinite(value):
        return f"{value} {unit}".strip()
    if value == 0:
        return f"0.00 {unit}"

    for exponent, prefix in _DISPLAY_PREFIXES:
        scale = 10.0 ** exponent
        if abs(value) >= scale:
            scaled = value / scale
            text = str(int(scaled)) if scaled.is_integer() else f"{scaled:.2f}"
            return f"{text} {prefix}{unit}"

    # Below femto
    return f"{value:.2e} {unit}"
