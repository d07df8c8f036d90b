"""
Utilidades de visualización.

Proporciona funciones para mostrar imágenes, mapas de etiquetas y máscaras,
y un grid que resume todas las etapas de la segmentación por color.
"""

from typing import List, Optional, Tuple, TYPE_CHECKING

import numpy as np
import matplotlib.pyplot as plt

if TYPE_CHECKING:
    from ..pipeline import SegmentationResult


def show_image(
    array: np.ndarray,
    title: Optional[str] = None,
    caption: Optional[str] = None,
    ax: Optional[plt.Axes] = None
) -> None:
    """
    Muestra una imagen, un mapa de etiquetas o una máscara.

    Las imágenes RGB se muestran tal cual. Los arrays 2D (máscaras booleanas,
    mapas de etiquetas, luminosidad) se muestran en escala de grises
    escalada a su propio rango, como imshow(x, []).

    Args:
        array: Imagen (H, W, 3) o array 2D (H, W)
        title: Título opcional del subplot
        caption: Texto opcional bajo la imagen, alineado a la derecha
                 (p. ej. créditos de la imagen)
        ax: Ejes de matplotlib donde dibujar. Si None, usa plt.gca().

    Example:
        >>> show_image(he, 'H&E image',
        ...            caption='Image courtesy of Alan Partin, Johns Hopkins University')
        >>> show_image(pixel_labels, 'Image Labeled by Cluster Index')
    """
    if ax is None:
        ax = plt.gca()

    if array.ndim == 2:
        data = array.astype(np.float64)
        ax.imshow(data, cmap='gray', vmin=data.min(), vmax=max(data.max(), data.min() + 1e-12))
    else:
        ax.imshow(array)

    ax.axis('off')

    if title is not None:
        ax.set_title(title, fontsize=12, pad=10)

    if caption is not None:
        ax.text(
            1.0, -0.02, caption,
            transform=ax.transAxes,
            fontsize=7,
            ha='right',
            va='top'
        )


def plot_image_grid(
    images: List[np.ndarray],
    titles: List[str],
    figsize: Tuple[int, int] = (18, 6)
) -> plt.Figure:
    """
    Crea un grid de imágenes en una sola fila.

    Args:
        images: Lista de imágenes (H, W, 3) o arrays 2D.
        titles: Lista de títulos para cada imagen. Debe tener la misma
                longitud que images.
        figsize: Tamaño de la figura (ancho, alto) en pulgadas.

    Returns:
        fig: Figura de matplotlib con el grid de imágenes.

    Raises:
        ValueError: Si la longitud de images y titles no coincide.
    """
    if len(images) != len(titles):
        raise ValueError(
            f"El número de imágenes ({len(images)}) debe coincidir "
            f"con el número de títulos ({len(titles)})"
        )

    n_images = len(images)

    fig, axes = plt.subplots(1, n_images, figsize=figsize)

    # Si solo hay una imagen, axes no es un array
    if n_images == 1:
        axes = [axes]

    for ax, img, title in zip(axes, images, titles):
        show_image(img, title, ax=ax)

    plt.tight_layout()

    return fig


def plot_segmentation_results(
    result: 'SegmentationResult',
    figsize: Optional[Tuple[int, int]] = None
) -> plt.Figure:
    """
    Visualiza todas las etapas de la segmentación en un grid de 2 filas.

    - Fila 1: Imagen original, mapa de etiquetas, núcleos segmentados
    - Fila 2: Una imagen por cluster (el cluster de núcleos se marca en el título)

    Args:
        result: SegmentationResult devuelto por ColorSegmentationPipeline.run()
        figsize: Tamaño de la figura. Por defecto 5 pulgadas por columna.

    Returns:
        fig: Figura de matplotlib.
    """
    n_clusters = len(result.clusters)
    n_cols = max(3, n_clusters)

    if figsize is None:
        figsize = (5 * n_cols, 10)

    fig, axes = plt.subplots(2, n_cols, figsize=figsize, squeeze=False)

    show_image(result.image, 'H&E image', ax=axes[0, 0])
    show_image(result.label_map, 'Image Labeled by Cluster Index', ax=axes[0, 1])
    show_image(result.nuclei.image, 'Blue Nuclei', ax=axes[0, 2])

    for col in range(3, n_cols):
        axes[0, col].axis('off')

    for col in range(n_cols):
        ax = axes[1, col]
        label = col + 1
        if label not in result.clusters:
            ax.axis('off')
            continue

        title = f'Objects in Cluster {label}'
        if label == result.target_label:
            title += ' (nuclei)'
        show_image(result.clusters[label].image, title, ax=ax)

    plt.tight_layout()

    return fig
