"""
Cargador de imágenes RGB.

Proporciona la clase ImageLoader para leer una imagen desde disco y
convertirla a un numpy array RGB (H, W, 3), y save_image para guardar
imágenes y máscaras resultantes.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..errors import ImageDecodeError, UnsupportedImageFormatError

logger = logging.getLogger(__name__)

# Modos de Pillow con muestras de 16 bits (o enteros de 32 bits)
SIXTEEN_BIT_MODES = ('I;16', 'I;16L', 'I;16B', 'I;16N', 'I')


def _gray16_to_rgb(gray: np.ndarray) -> np.ndarray:
    """
    Replica un canal de 16 bits en tres canales uint16.

    convert('RGB') recortaría las muestras a 255, así que el rango completo
    se conserva aquí y to_unit_range divide después por 65535.
    """
    gray = np.clip(gray, 0, np.iinfo(np.uint16).max).astype(np.uint16)
    return np.stack([gray, gray, gray], axis=-1)


@dataclass
class LoadedImage:
    """
    Imagen cargada con sus metadatos intrínsecos.

    Attributes:
        image: Array RGB con shape (H, W, 3)
        path: Ruta del archivo leído
    """
    image: np.ndarray
    path: Path

    @property
    def height(self) -> int:
        return self.image.shape[0]

    @property
    def width(self) -> int:
        return self.image.shape[1]

    @property
    def channels(self) -> int:
        return self.image.shape[2]

    @property
    def dtype(self) -> np.dtype:
        return self.image.dtype


class ImageLoader:
    """
    Cargador de imágenes RGB desde disco.

    Las rutas relativas se resuelven contra base_dir (si se proporciona).
    Las imágenes en modos distintos de RGB (L, P, RGBA, CMYK...) se
    convierten a RGB para que el pipeline siempre reciba 3 canales.

    Example:
        >>> loader = ImageLoader(base_dir=Path('data/'))
        >>> he = loader.load('hestain.png').image
        >>> print(he.shape, he.dtype)  # (227, 302, 3) uint8
    """

    def __init__(self, base_dir: Optional[Union[str, Path]] = None):
        """
        Inicializa el cargador.

        Args:
            base_dir: Directorio base para rutas relativas. Si None, se usan
                      las rutas tal cual (relativas al directorio actual).
        """
        self.base_dir = Path(base_dir) if base_dir is not None else None

    def resolve(self, path: Union[str, Path]) -> Path:
        """Resuelve una ruta relativa contra base_dir."""
        path = Path(path)
        if self.base_dir is not None and not path.is_absolute():
            path = self.base_dir / path
        return path

    def load(self, path: Union[str, Path]) -> LoadedImage:
        """
        Carga una imagen como array RGB.

        Args:
            path: Ruta del archivo de imagen (PNG, JPG, TIFF...)

        Returns:
            LoadedImage con el array (H, W, 3) y sus metadatos.

        Raises:
            FileNotFoundError: Si el archivo no existe.
            UnsupportedImageFormatError: Si Pillow no reconoce el formato.
            ImageDecodeError: Si el formato es válido pero los datos no se
                              pueden decodificar (archivo truncado, corrupto).
        """
        image_path = self.resolve(path)

        if not image_path.is_file():
            raise FileNotFoundError(
                f"Imagen no encontrada: {image_path}"
            )

        try:
            img = Image.open(image_path)
        except UnidentifiedImageError as e:
            raise UnsupportedImageFormatError(
                f"Formato de imagen no soportado: {image_path}"
            ) from e

        with img:
            try:
                img.load()
            except OSError as e:
                raise ImageDecodeError(
                    f"Error al decodificar la imagen {image_path}: {e}"
                ) from e

            if img.mode in SIXTEEN_BIT_MODES:
                img_array = _gray16_to_rgb(np.array(img))
            else:
                # Convertir a RGB si la imagen viene en otro modo
                if img.mode != 'RGB':
                    logger.debug(f"Convirtiendo {image_path.name} de modo {img.mode} a RGB")
                    img = img.convert('RGB')

                img_array = np.array(img)

        logger.info(
            f"Imagen cargada: {image_path.name} "
            f"({img_array.shape[0]}x{img_array.shape[1]}, {img_array.dtype})"
        )

        return LoadedImage(image=img_array, path=image_path)


def load_image(path: Union[str, Path]) -> LoadedImage:
    """Atajo para ImageLoader().load(path)."""
    return ImageLoader().load(path)


def save_image(array: np.ndarray, path: Union[str, Path]) -> Path:
    """
    Guarda una imagen o máscara en disco.

    Las máscaras booleanas se guardan como 0/255 y los mapas de etiquetas
    enteros se escalan a [0, 255] según su rango (como imshow(x, [])).

    Args:
        array: Imagen (H, W, 3) uint8 o mapa 2D (bool, entero o float [0, 1])
        path: Ruta de destino; el formato se deduce de la extensión

    Returns:
        Path del archivo escrito.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if array.dtype == np.bool_:
        data = array.astype(np.uint8) * 255
    elif array.ndim == 2 and np.issubdtype(array.dtype, np.integer):
        low, high = int(array.min()), int(array.max())
        span = max(high - low, 1)
        data = ((array.astype(np.float64) - low) / span * 255).astype(np.uint8)
    elif np.issubdtype(array.dtype, np.floating):
        data = (np.clip(array, 0.0, 1.0) * 255).round().astype(np.uint8)
    else:
        data = array.astype(np.uint8)

    Image.fromarray(data).save(path)

    return path
