"""
Utils package initialization.
Import semua utilities di sini agar mudah diakses.
"""

from .config import Config
from .metrics import MetricsCollector, metrics, measure_time

__all__ = ['Config', 'MetricsCollector', 'metrics', 'measure_time']
