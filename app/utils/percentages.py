import math

def to_percentage(value: float) -> float:
    """Round to one decimal, halves rounded up"""
    return math.floor(value * 10 + 0.5) / 10

def round_half_up(value: float) -> int:
    """Nearest integer, halves rounded up"""
    return int(math.floor(value + 0.5))

def percentage_of(part: float, whole: float) -> float:
    return to_percentage(part / whole * 100) if whole > 0 else 0

def average(values) -> float:
    values = list(values)
    return sum(values) / len(values) if values else 0.0
