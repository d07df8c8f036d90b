import marimo

__generated_with = "0.17.6"
app = marimo.App(width="full")


@app.cell
def _():
    import marimo as mo
    import matplotlib.pyplot as plt
    from pathlib import Path

    from colorseg.data_loader import ImageLoader
    from colorseg.color import rgb_to_lab, lightness_channel, extract_chromaticity
    from colorseg.kmeans import KMeansConfig, segment_features, select_cluster
    from colorseg.masking import ThresholdConfig, mask_all_clusters, split_by_lightness
    from colorseg.viz import show_image, plot_image_grid
    return (
        ImageLoader,
        KMeansConfig,
        Path,
        ThresholdConfig,
        extract_chromaticity,
        lightness_channel,
        mask_all_clusters,
        mo,
        plot_image_grid,
        plt,
        rgb_to_lab,
        segment_features,
        select_cluster,
        show_image,
        split_by_lightness,
    )


@app.cell
def _(mo):
    mo.md("""
    # Color-Based Segmentation Using K-Means Clustering

    This notebook segments colors in an automated fashion using the
    **L\\*a\\*b\\*** color space and **K-means clustering**.

    The input is an image of tissue stained with hematoxylin and eosin (H&E).
    This staining method helps pathologists distinguish different tissue types.
    """)
    return


@app.cell
def _(ImageLoader, Path, plt, show_image):
    # Step 1: Read Image
    IMAGE_PATH = Path("data") / "hestain.png"

    loaded = ImageLoader().load(IMAGE_PATH)
    he = loaded.image

    fig_he, ax_he = plt.subplots(figsize=(8, 6))
    show_image(
        he,
        'H&E image',
        caption='Image courtesy of Alan Partin, Johns Hopkins University',
        ax=ax_he
    )
    fig_he
    return (he,)


@app.cell
def _(mo):
    mo.md("""
    ## Step 2: Convert Image from RGB Color Space to L\\*a\\*b\\* Color Space

    How many colors do you see in the image if you ignore variations in
    brightness? There are three colors: white, blue, and pink.

    The L\\*a\\*b\\* space consists of a luminosity layer **L\\***, a chromaticity
    layer **a\\*** (red-green axis) and a chromaticity layer **b\\*** (blue-yellow
    axis). All of the color information is in the a\\* and b\\* layers, and the
    difference between two colors is measured with the Euclidean distance.
    """)
    return


@app.cell
def _(he, rgb_to_lab):
    lab_he = rgb_to_lab(he)
    return (lab_he,)


@app.cell
def _(mo):
    mo.md("""
    ## Step 3: Classify the Colors in a\\*b\\* Space Using K-Means Clustering

    The objects to cluster are pixels with a\\* and b\\* values. K-means is
    repeated 3 times from independent initializations to avoid local minima;
    the attempt with the lowest within-cluster sum of squares is kept.
    """)
    return


@app.cell
def _(KMeansConfig, extract_chromaticity, he, lab_he, segment_features):
    ab = extract_chromaticity(lab_he)
    n_colors = 3

    kmeans_config = KMeansConfig(n_clusters=n_colors, n_attempts=3, random_state=0)
    pixel_labels, kmeans_result = segment_features(ab, he.shape[:2], kmeans_config)
    kmeans_result.attempt_inertias
    return kmeans_result, n_colors, pixel_labels


@app.cell
def _(pixel_labels, plt, show_image):
    fig_labels, ax_labels = plt.subplots(figsize=(8, 6))
    show_image(pixel_labels, 'Image Labeled by Cluster Index', ax=ax_labels)
    fig_labels
    return


@app.cell
def _(mo):
    mo.md("""
    ## Step 4: Create Images that Segment the H&E Image by Color

    Using the pixel labels, the objects are separated by color, which results
    in one image per cluster.
    """)
    return


@app.cell
def _(he, mask_all_clusters, n_colors, pixel_labels, plot_image_grid):
    clusters = mask_all_clusters(pixel_labels, he, n_colors)

    fig_clusters = plot_image_grid(
        [c.image for c in clusters.values()],
        [f'Objects in Cluster {label}' for label in clusters]
    )
    fig_clusters
    return (clusters,)


@app.cell
def _(mo):
    mo.md("""
    ## Step 5: Segment the Nuclei

    The blue cluster contains dark and light blue objects. The cell nuclei are
    dark blue, so they are separated with the **L\\*** layer: the brightness of
    the pixels in this cluster is thresholded with a global Otsu threshold and
    the light blue pixels are removed from the cluster mask.

    The blue cluster is the one whose centroid has the most negative b\\*.
    """)
    return


@app.cell
def _(
    ThresholdConfig,
    clusters,
    he,
    kmeans_result,
    lab_he,
    lightness_channel,
    select_cluster,
    split_by_lightness,
):
    blue_label = select_cluster(kmeans_result.centroids)

    L = lightness_channel(lab_he)
    nuclei = split_by_lightness(
        L,
        clusters[blue_label].mask,
        he,
        ThresholdConfig(rescale='image', remove='light')
    )
    str(nuclei)
    return blue_label, nuclei


@app.cell
def _(blue_label, clusters, nuclei, plot_image_grid):
    fig_nuclei = plot_image_grid(
        [clusters[blue_label].image, nuclei.image],
        [f'Objects in Cluster {blue_label}', 'Blue Nuclei'],
        figsize=(14, 6)
    )
    fig_nuclei
    return


if __name__ == "__main__":
    app.run()
