"""
Módulo de visualización para colorseg.

Proporciona la salida de presentación del pipeline: mostrar imágenes y
máscaras con título y créditos, y grids con todas las etapas de la
segmentación.
"""

from .display import show_image, plot_image_grid, plot_segmentation_results

__all__ = ['show_image', 'plot_image_grid', 'plot_segmentation_results']
