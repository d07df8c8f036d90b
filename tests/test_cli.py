"""
Command Line Tests
"""

import pytest
from PIL import Image

from colorseg.cli import main, parse_args


@pytest.fixture
def png_path(tmp_path, three_color_image):
    path = tmp_path / "tissue.png"
    Image.fromarray(three_color_image).save(path)
    return path


class TestCli:
    def test_defaults(self):
        args = parse_args(["image.png"])

        assert args.clusters == 3
        assert args.attempts == 3
        assert args.rescale == "image"
        assert args.output_dir is None

    def test_writes_outputs(self, png_path, tmp_path):
        out = tmp_path / "out"

        code = main([str(png_path), "--attempts", "1", "--no-show", "--output-dir", str(out)])

        assert code == 0
        expected = {
            "tissue_labels.png",
            "tissue_cluster1.png",
            "tissue_cluster2.png",
            "tissue_cluster3.png",
            "tissue_nuclei_mask.png",
            "tissue_nuclei.png",
        }
        assert {p.name for p in out.iterdir()} == expected

    def test_missing_image(self, tmp_path):
        assert main([str(tmp_path / "missing.png"), "--no-show"]) == 1

    def test_unwritable_output_dir(self, png_path, tmp_path):
        blocker = tmp_path / "blocker_file"
        blocker.write_text("", encoding="utf-8")

        code = main([str(png_path), "--no-show", "--output-dir", str(blocker / "out")])

        assert code == 1

    def test_too_many_clusters(self, png_path):
        assert main([str(png_path), "--clusters", "5", "--no-show"]) == 1

    def test_invalid_target_label(self, png_path):
        assert main([str(png_path), "--target-label", "9", "--no-show"]) == 1

    def test_sklearn_backend(self, png_path):
        assert main([str(png_path), "--backend", "sklearn", "--no-show"]) == 0
