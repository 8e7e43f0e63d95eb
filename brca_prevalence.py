#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
brca_prevalence.py

TOP MUTATED GENES AND PATIENT PREVALENCE
========================================
  1. Count non-silent mutations per gene and keep the top N
  2. For those genes, count distinct mutated patients and the fraction of
     the cohort they represent

Ties at equal counts keep first-encountered order, so the top N is
deterministic for a given input.
"""

from dataclasses import dataclass

import pandas as pd

from brca_common import (
    GENE_COL,
    PATIENT_COL,
    TOP_N,
    log,
    require_columns,
    section_header,
)
from brca_mutations import filter_non_silent


@dataclass(frozen=True)
class PrevalenceResult:
    """Top genes by mutation count and their prevalence across patients."""

    top_genes: pd.DataFrame
    prevalence: pd.DataFrame
    total_patients: int


def count_patients(joined):
    """Distinct patient barcodes in the full (unfiltered) joined table."""
    require_columns(joined, [PATIENT_COL], "joined")
    return int(joined[PATIENT_COL].nunique())


def top_mutated_genes(filtered, n=TOP_N):
    """
    Return the `n` genes with the most mutation rows as columns gene, count.

    Sorted descending by count; equal counts keep the order in which the
    genes first appear in `filtered`.
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    require_columns(filtered, [GENE_COL], "mutation")

    # sort=False keeps first-encountered order
    counts = (filtered.groupby(GENE_COL, sort=False).size()
              .rename_axis("gene").reset_index(name="count"))
    counts["_order"] = range(len(counts))

    top = (counts.sort_values(["count", "_order"], ascending=[False, True])
           .head(n)
           .drop(columns="_order")
           .reset_index(drop=True))
    top["count"] = top["count"].astype(int)
    return top


def gene_prevalence(filtered, genes, total_patients):
    """
    Fraction of patients carrying at least one mutation in each gene.

    Repeated mutations of a gene in one patient count once. The result has
    columns gene, patients, fraction and is sorted descending by patients;
    ties keep the order of `genes`.
    """
    require_columns(filtered, [GENE_COL, PATIENT_COL], "mutation")

    genes = list(dict.fromkeys(genes))
    if total_patients < 0:
        raise ValueError(f"total_patients must be non-negative, got {total_patients}")

    subset = filtered[filtered[GENE_COL].isin(genes)]
    pairs = subset[[GENE_COL, PATIENT_COL]].drop_duplicates()

    if total_patients == 0 and len(pairs):
        raise ValueError("total_patients is 0 but mutated patients were found")

    patients = pairs.groupby(GENE_COL).size().reindex(genes, fill_value=0)

    prevalence = pd.DataFrame({
        "gene": genes,
        "patients": patients.values.astype(int),
    })
    prevalence["fraction"] = (prevalence["patients"] / total_patients
                              if total_patients else 0.0)
    prevalence["_order"] = range(len(prevalence))

    return (prevalence.sort_values(["patients", "_order"], ascending=[False, True])
            .drop(columns="_order")
            .reset_index(drop=True))


def analyze_prevalence(joined, n=TOP_N):
    """Filter, rank and compute prevalence for a joined mutation table."""
    total_patients = count_patients(joined)
    filtered = filter_non_silent(joined)

    section_header(f"STEP 5: TOP {n} MUTATED GENES")
    top = top_mutated_genes(filtered, n)
    for i, (gene, count) in enumerate(zip(top["gene"], top["count"]), 1):
        log(f"  {i:2d}. {gene}: {count}")

    section_header(f"STEP 6: GENE PREVALENCE ({total_patients} patients)")
    prevalence = gene_prevalence(filtered, top["gene"], total_patients)
    rows = zip(prevalence["gene"], prevalence["patients"], prevalence["fraction"])
    for i, (gene, patients, fraction) in enumerate(rows, 1):
        log(f"  {i:2d}. {gene}: {patients} ({100 * fraction:.1f}%)")

    return PrevalenceResult(top_genes=top, prevalence=prevalence,
                            total_patients=total_patients)
