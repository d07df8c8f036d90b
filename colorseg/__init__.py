"""
colorseg - Color-Based Segmentation Using K-Means Clustering.

Este paquete segmenta imágenes H&E por color en el espacio L*a*b* con
K-Means y separa los núcleos celulares (azul oscuro) dentro del cluster azul
mediante un umbral global de Otsu sobre la luminosidad.
"""

from .errors import (
    SegmentationError,
    InputShapeError,
    InvalidConfigurationError,
    EmptyMaskError,
    ImageLoadError,
    UnsupportedImageFormatError,
    ImageDecodeError
)
from .pipeline import (
    SegmentationConfig,
    SegmentationResult,
    ColorSegmentationPipeline,
    segment_nuclei
)

__version__ = "0.1.0"

__all__ = [
    'SegmentationError',
    'InputShapeError',
    'InvalidConfigurationError',
    'EmptyMaskError',
    'ImageLoadError',
    'UnsupportedImageFormatError',
    'ImageDecodeError',
    'SegmentationConfig',
    'SegmentationResult',
    'ColorSegmentationPipeline',
    'segment_nuclei',
]
