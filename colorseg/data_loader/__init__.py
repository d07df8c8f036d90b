"""
Módulo de carga de imágenes para colorseg.

Proporciona un ImageLoader que lee imágenes RGB desde disco con Pillow y
devuelve el array junto con sus metadatos (alto, ancho, canales, dtype).

Example:
    >>> from colorseg.data_loader import ImageLoader
    >>>
    >>> loader = ImageLoader()
    >>> loaded = loader.load('hestain.png')
    >>> print(loaded.height, loaded.width, loaded.channels)  # 227 302 3
"""

from .image_loader import LoadedImage, ImageLoader, load_image, save_image

__all__ = [
    'LoadedImage',
    'ImageLoader',
    'load_image',
    'save_image'
]
