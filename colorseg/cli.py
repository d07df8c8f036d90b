"""
Command line entry point.

Segment one H&E image by color and isolate the blue nuclei:

    colorseg hestain.png --clusters 3 --attempts 3 --output-dir out/
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .data_loader import load_image, save_image
from .errors import SegmentationError
from .kmeans import KMeansConfig
from .masking import ThresholdConfig
from .pipeline import ColorSegmentationPipeline, SegmentationConfig, SegmentationResult

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="colorseg",
        description="Color-based segmentation using L*a*b* and K-means clustering.",
    )
    p.add_argument("image", type=str, help="Path to the RGB image (e.g. an H&E slide).")
    p.add_argument("--clusters", type=int, default=3, help="Number of clusters K.")
    p.add_argument(
        "--attempts",
        type=int,
        default=3,
        help="Independent K-means initializations; the lowest inertia is kept.",
    )
    p.add_argument("--max-iter", type=int, default=100, help="Max Lloyd iterations per attempt.")
    p.add_argument("--seed", type=int, default=0, help="Random seed.")
    p.add_argument("--init", choices=["k-means++", "random"], default="k-means++")
    p.add_argument("--backend", choices=["lloyd", "sklearn"], default="lloyd")
    p.add_argument("--jobs", type=int, default=1, help="Worker threads for K-means.")
    p.add_argument(
        "--target-label",
        type=int,
        default=None,
        help="Cluster holding the nuclei (default: the bluest cluster).",
    )
    p.add_argument(
        "--rescale",
        choices=["image", "masked"],
        default="image",
        help="Lightness rescale range before Otsu thresholding.",
    )
    p.add_argument(
        "--remove",
        choices=["light", "dark"],
        default="light",
        help="Side of the lightness threshold removed from the cluster.",
    )
    p.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Folder where label map, cluster images and nuclei mask are written.",
    )
    p.add_argument("--no-show", action="store_true", help="Do not open matplotlib windows.")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return p.parse_args(argv)


def write_outputs(result: SegmentationResult, output_dir: Path, stem: str) -> List[Path]:
    """Write every stage's image to output_dir as PNG."""
    written = [save_image(result.label_map, output_dir / f"{stem}_labels.png")]

    for label, cluster in result.clusters.items():
        written.append(save_image(cluster.image, output_dir / f"{stem}_cluster{label}.png"))

    written.append(save_image(result.nuclei.mask, output_dir / f"{stem}_nuclei_mask.png"))
    written.append(save_image(result.nuclei.image, output_dir / f"{stem}_nuclei.png"))

    return written


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = SegmentationConfig(
            kmeans=KMeansConfig(
                n_clusters=args.clusters,
                n_attempts=args.attempts,
                max_iter=args.max_iter,
                init=args.init,
                random_state=args.seed,
                n_jobs=args.jobs,
                backend=args.backend,
            ),
            threshold=ThresholdConfig(rescale=args.rescale, remove=args.remove),
            target_label=args.target_label,
        )

        loaded = load_image(args.image)
        result = ColorSegmentationPipeline(config).run(loaded.image)
    except (SegmentationError, OSError) as e:
        logger.error(f"Segmentation failed: {e}")
        return 1

    logger.info(str(result))

    if args.output_dir is not None:
        try:
            written = write_outputs(result, Path(args.output_dir), loaded.path.stem)
        except OSError as e:
            logger.error(f"Could not write outputs to {args.output_dir}: {e}")
            return 1
        logger.info(f"Wrote {len(written)} images to {args.output_dir}")

    if not args.no_show:
        import matplotlib.pyplot as plt
        from .viz import plot_segmentation_results

        plot_segmentation_results(result)
        plt.show()

    return 0


if __name__ == "__main__":
    sys.exit(main())
