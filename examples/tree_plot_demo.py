"""
Demo: Abundance-Annotated Tree

Builds a small synthetic study (eight OTUs, six samples from two sites),
plots it in both dodge modes and writes interactive HTML next to this file.
"""

from pathlib import Path

import numpy as np
import pandas as pd

from otutree import TreePlotConfig, TreeStructure, assemble_dataset, plot_tree_html
from otutree.core.taxonomy import add_lowest_rank_column, split_taxonomy

NEWICK = (
    "(((OTU1:0.05,OTU2:0.08):0.10,(OTU3:0.12,OTU4:0.02):0.07):0.04,"
    "((OTU5:0.20,OTU6:0.15):0.05,(OTU7:0.09,OTU8:0.11):0.12):0.06);"
)

LINEAGES = {
    "OTU1": "k__Bacteria;p__Proteobacteria;c__Gammaproteobacteria;o__Enterobacterales",
    "OTU2": "k__Bacteria;p__Proteobacteria;c__Gammaproteobacteria;o__",
    "OTU3": "k__Bacteria;p__Proteobacteria;c__Alphaproteobacteria",
    "OTU4": "k__Bacteria;p__Proteobacteria",
    "OTU5": "k__Bacteria;p__Firmicutes;c__Bacilli;o__Lactobacillales",
    "OTU6": "k__Bacteria;p__Firmicutes;c__Clostridia",
    "OTU7": "k__Bacteria;p__Bacteroidetes;c__Bacteroidia",
    "OTU8": "k__Bacteria;p__Bacteroidetes;c__;o__",
}


def make_study(seed=0):
    rng = np.random.default_rng(seed)
    otus = list(LINEAGES)
    samples = [f"S{i}" for i in range(1, 7)]

    # Sparse counts: roughly half of the (OTU, sample) pairs are absent
    counts = rng.poisson(8, size=(len(otus), len(samples))).astype(float)
    counts[rng.random(counts.shape) < 0.5] = 0.0
    abundance = pd.DataFrame(counts, index=otus, columns=samples)

    taxonomy = pd.DataFrame(
        [split_taxonomy(LINEAGES[otu]) for otu in otus], index=otus
    )
    taxonomy = add_lowest_rank_column(taxonomy)

    metadata = pd.DataFrame(
        {
            "site": ["gut", "gut", "gut", "soil", "soil", "soil"],
            "depth": [12, 18, 25, 5, 9, 14],
        },
        index=samples,
    )
    tree = TreeStructure.from_newick(NEWICK)
    return assemble_dataset(abundance, taxonomy, metadata, tree)


def main():
    print("=" * 70)
    print("Abundance-Annotated Tree Demo")
    print("=" * 70)

    dataset = make_study()
    print(f"\n  {dataset!r}")
    long = dataset.melt()
    print(f"  Nonzero observations: {(long['Abundance'] > 0).sum()} of {len(long)}")

    out_dir = Path(__file__).parent
    for justify in ["jagged", "justified"]:
        config = TreePlotConfig(
            ladderize="left",
            color="site",
            size="Abundance",
            tooltip="Lowest",
            label_tips="Lowest",
            justify=justify,
            min_abundance=10,
            title=f"Synthetic study ({justify})",
        )
        result = plot_tree_html(dataset, out_dir / f"tree_{justify}.html", config)
        n_points = len(result.static.primitives.points)
        print(f"\n  {justify}: {n_points} points -> {result.html_path}")


if __name__ == '__main__':
    main()
