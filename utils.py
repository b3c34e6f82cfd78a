# utils.py
import numpy as np
from fractions import Fraction
from tabulate import tabulate


def limit_fraction(value, fraction_digits=3):
    """Limit the number of digits in a fraction's numerator and denominator."""
    if value is None or abs(float(value)) < 1e-10:
        return Fraction(0)

    try:
        frac = Fraction(value) if not isinstance(value, Fraction) else value
    except (TypeError, ValueError):
        return Fraction(0)

    max_value = 10 ** fraction_digits - 1
    n, d = frac.numerator, frac.denominator

    if abs(n) > max_value or abs(d) > max_value:
        return Fraction(float(frac)).limit_denominator(max_value)
    return frac


def convert_to_fraction(value, fraction_digits=3, force_float=False):
    """
    Convert a decimal value to a fraction string or formatted float.

    Args:
        value: The numerical value to convert.
        fraction_digits: Max digits for numerator/denominator or float precision.
        force_float: If True, always return formatted float.

    Returns:
        Formatted string representation.
    """
    try:
        float_value = float(value)
        if not np.isfinite(float_value):
            return format_number(float_value)
        if force_float:
            return f"{float_value:.{fraction_digits}f}"

        frac = limit_fraction(Fraction(float_value), fraction_digits)
        # Only accept the fraction if it reproduces the value
        if not np.isclose(float(frac), float_value, rtol=1e-9, atol=1e-9):
            return f"{float_value:.{fraction_digits}f}"
        return str(frac)

    except (ValueError, TypeError, OverflowError):
        return str(value)  # Return original if conversion fails


def format_number(value, digits=4):
    """Format a float, spelling out infinities."""
    if value == np.inf:
        return "+∞"
    if value == -np.inf:
        return "-∞"
    if np.isnan(value):
        return "n/a"
    return f"{value:.{digits}f}"


def format_range(range_tuple, current=None):
    """Format a sensitivity range in a readable way."""
    lower, upper = range_tuple
    lower_str = format_number(lower)
    upper_str = format_number(upper)

    if current is not None:
        delta_lower = "any decrease" if lower == -np.inf else f"{current - lower:.4f}"
        delta_upper = "any increase" if upper == np.inf else f"{upper - current:.4f}"
        return f"[{lower_str}, {upper_str}] (Current: {current:.4f}, Δ-: {delta_lower}, Δ+: {delta_upper})"
    return f"[{lower_str}, {upper_str}]"


def format_tableau(matrix, column_names, basic_variables, use_fractions=False, fraction_digits=3):
    """Render a tableau (objective row last, RHS last column) as a text table."""
    headers = ["Basis"] + list(column_names) + ["RHS"]
    labels = list(basic_variables) + ["z"]

    def cell(value):
        if use_fractions:
            return convert_to_fraction(value, fraction_digits)
        return f"{value:8.4f}"

    rows = []
    for label, row in zip(labels, np.asarray(matrix)):
        rows.append([label] + [cell(v) for v in row])

    return tabulate(rows, headers=headers, colalign=["left"] + ["right"] * (len(headers) - 1))
