"""
Color space module: RGB to CIE L*a*b* and chromaticity features.
"""

from .converter import rgb_to_lab, lightness_channel, to_unit_range
from .features import extract_chromaticity, restore_spatial

__all__ = [
    'rgb_to_lab',
    'lightness_channel',
    'to_unit_range',
    'extract_chromaticity',
    'restore_spatial'
]
