#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
brca_maf_summary.py

MAF SUMMARY OBJECT + SIX-PANEL DIAGNOSTIC FIGURE
================================================
Builds the cohort-level MAF summary from the raw mutation and clinical
tables and renders the standard six panels:

  A) Variant classification counts
  B) Variant type counts
  C) SNV class counts
  D) Variants per sample (stacked by classification)
  E) Per-classification distribution across samples
  F) Top mutated genes with fraction of samples mutated

The clinical table must carry its identifier as Tumor_Sample_Barcode; use
clinical_for_maf_summary() to rename it before building a MafSummary.
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from matplotlib.gridspec import GridSpec

from brca_common import (
    CLASS_COL,
    CLINICAL_ID_COL,
    GENE_COL,
    NON_SILENT_VARIANTS,
    PATIENT_ID_LENGTH,
    REQUIRED_MAF_COLS,
    SAMPLE_COL,
    TOP_N,
    SchemaValidationError,
    log,
    require_columns,
    section_header,
)

plt.rcParams['font.size'] = 10
plt.rcParams['axes.linewidth'] = 1.5

VARIANT_TYPE_COL = "Variant_Type"
REF_COL = "Reference_Allele"
ALT_COL = "Tumor_Seq_Allele2"

SNV_CLASSES = ["C>A", "C>G", "C>T", "T>A", "T>C", "T>G"]
COMPLEMENT = {"A": "T", "C": "G", "G": "C", "T": "A"}

VARIANT_COLORS = {
    "Frame_Shift_Del": "#1F78B4",
    "Frame_Shift_Ins": "#984EA3",
    "In_Frame_Del": "#FFFF33",
    "In_Frame_Ins": "#A65628",
    "Missense_Mutation": "#33A02C",
    "Nonsense_Mutation": "#E31A1C",
    "Nonstop_Mutation": "#A6CEE3",
    "Splice_Site": "#FF7F00",
    "Translation_Start_Site": "#B2DF8A",
}


def clinical_for_maf_summary(clinical, id_col=CLINICAL_ID_COL):
    """
    Rename the clinical identifier column to Tumor_Sample_Barcode.

    Pre:  `id_col` is a column of `clinical`.
    Post: a new table identical to `clinical` except that `id_col` is now
          called Tumor_Sample_Barcode. The input is not modified.
    """
    require_columns(clinical, [id_col], "clinical")
    if id_col == SAMPLE_COL:
        return clinical.copy()
    if SAMPLE_COL in clinical.columns:
        raise SchemaValidationError(
            SAMPLE_COL, "clinical",
            reason=f"Column '{SAMPLE_COL}' already present in clinical table; "
                   f"cannot rename '{id_col}'",
        )
    return clinical.rename(columns={id_col: SAMPLE_COL})


def snv_class(ref, alt):
    """Collapse a single-base substitution onto its pyrimidine reference class."""
    if ref in ("A", "G"):
        ref, alt = COMPLEMENT[ref], COMPLEMENT[alt]
    return f"{ref}>{alt}"


class MafSummary:
    """
    Cohort summary of a MAF table.

    Non-silent variants form the working data; every other row is kept in
    `silent`. Construction raises SchemaValidationError naming the first
    missing column.
    """

    def __init__(self, maf, clinical=None):
        require_columns(maf, REQUIRED_MAF_COLS, "mutation")
        if clinical is not None:
            require_columns(clinical, [SAMPLE_COL], "clinical")

        non_silent = maf[CLASS_COL].isin(NON_SILENT_VARIANTS)
        self.data = maf[non_silent].copy()
        self.silent = maf[~non_silent].copy()
        self.clinical = clinical.copy() if clinical is not None else None

        self.classes = [c for c in VARIANT_COLORS if c in set(self.data[CLASS_COL])]
        self.gene_summary = self._gene_summary()
        self.sample_summary = self._sample_summary()
        self.variant_type_counts = self._variant_type_counts()
        self.snv_class_counts = self._snv_class_counts()

    def _class_table(self, by):
        table = pd.crosstab(self.data[by], self.data[CLASS_COL])
        table = table.reindex(columns=self.classes, fill_value=0)
        table.columns.name = None
        table["total"] = table.sum(axis=1)
        return table

    def _gene_summary(self):
        summary = self._class_table(GENE_COL)
        summary["MutatedSamples"] = (self.data.groupby(GENE_COL)[SAMPLE_COL]
                                     .nunique().reindex(summary.index).astype(int))
        summary = summary.sort_values(["MutatedSamples", "total"], ascending=False,
                                      kind="stable")
        return summary.reset_index()

    def _sample_summary(self):
        summary = self._class_table(SAMPLE_COL)
        summary = summary.sort_values("total", ascending=False, kind="stable")
        return summary.reset_index()

    def _variant_type_counts(self):
        if VARIANT_TYPE_COL not in self.data.columns:
            return pd.Series(dtype=int, name=VARIANT_TYPE_COL)
        return self.data[VARIANT_TYPE_COL].value_counts()

    def _snv_class_counts(self):
        if REF_COL not in self.data.columns or ALT_COL not in self.data.columns:
            return pd.Series(0, index=SNV_CLASSES, dtype=int)

        ref = self.data[REF_COL].astype(str).str.upper()
        alt = self.data[ALT_COL].astype(str).str.upper()
        bases = list(COMPLEMENT)
        is_snv = ref.isin(bases) & alt.isin(bases) & (ref != alt)
        if VARIANT_TYPE_COL in self.data.columns:
            is_snv &= self.data[VARIANT_TYPE_COL] == "SNP"

        classes = [snv_class(r, a) for r, a in zip(ref[is_snv], alt[is_snv])]
        return pd.Series(classes, dtype=object).value_counts().reindex(
            SNV_CLASSES, fill_value=0).astype(int)

    @property
    def n_samples(self):
        return int(self.data[SAMPLE_COL].nunique())

    def clinical_matches(self):
        """Samples whose barcode (or its patient prefix) is in the clinical table."""
        if self.clinical is None:
            return 0
        samples = pd.Series(self.data[SAMPLE_COL].unique()).astype(str)
        ids = set(self.clinical[SAMPLE_COL].dropna().astype(str))
        matched = samples.isin(ids) | samples.str.slice(0, PATIENT_ID_LENGTH).isin(ids)
        return int(matched.sum())

    def summary(self):
        """Cohort-level statistics."""
        per_sample = self.sample_summary["total"]
        return {
            "n_samples": self.n_samples,
            "n_genes": int(self.data[GENE_COL].nunique()),
            "n_variants": int(len(self.data)),
            "n_silent": int(len(self.silent)),
            "mean_variants_per_sample": float(per_sample.mean()) if len(per_sample) else 0.0,
            "median_variants_per_sample": float(per_sample.median()) if len(per_sample) else 0.0,
            "clinical_samples_matched": self.clinical_matches(),
        }


def build_maf_summary(maf, clinical, id_col=CLINICAL_ID_COL):
    """Rename the clinical identifier and build a MafSummary."""
    section_header("STEP 7: MAF SUMMARY")
    summary = MafSummary(maf, clinical_for_maf_summary(clinical, id_col))

    stats = summary.summary()
    log(f"  Samples: {stats['n_samples']}")
    log(f"  Genes: {stats['n_genes']}")
    log(f"  Non-silent variants: {stats['n_variants']:,}")
    log(f"  Other variants set aside: {stats['n_silent']:,}")
    log(f"  Median variants per sample: {stats['median_variants_per_sample']:.0f}")
    log(f"  Samples matched to clinical: {stats['clinical_samples_matched']}")
    return summary

# ============================================================================
# FIGURE
# ============================================================================

def _style(ax, title):
    ax.set_title(title, fontsize=12, fontweight='bold', pad=10)
    ax.spines['top'].set_visible(False)
    ax.spines['right'].set_visible(False)


def _barh(ax, counts, title, colors=None):
    if len(counts) == 0 or counts.sum() == 0:
        ax.text(0.5, 0.5, 'No data', ha='center', va='center', transform=ax.transAxes)
        _style(ax, title)
        return

    y_pos = np.arange(len(counts))
    ax.barh(y_pos, counts.values, color=colors or 'steelblue',
            edgecolor='black', linewidth=1, alpha=0.8)
    ax.set_yticks(y_pos)
    ax.set_yticklabels(counts.index, fontsize=9)
    ax.invert_yaxis()
    ax.grid(axis='x', alpha=0.3, linestyle='--')
    _style(ax, title)


def plot_maf_summary(summary, path=None, top=TOP_N):
    """Render the six-panel MAF summary; save as PNG when `path` is given."""
    fig = plt.figure(figsize=(18, 10))
    gs = GridSpec(2, 3, figure=fig, hspace=0.45, wspace=0.35)
    classes = summary.classes

    # ========== PANEL A: Variant Classification ==========
    ax_a = fig.add_subplot(gs[0, 0])
    class_counts = summary.data[CLASS_COL].value_counts().reindex(classes)
    _barh(ax_a, class_counts, 'Variant Classification',
          [VARIANT_COLORS[c] for c in class_counts.index])

    # ========== PANEL B: Variant Type ==========
    ax_b = fig.add_subplot(gs[0, 1])
    _barh(ax_b, summary.variant_type_counts, 'Variant Type')

    # ========== PANEL C: SNV Class ==========
    ax_c = fig.add_subplot(gs[0, 2])
    _barh(ax_c, summary.snv_class_counts, 'SNV Class',
          sns.color_palette('Set2', len(SNV_CLASSES)).as_hex())

    # ========== PANEL D: Variants per Sample ==========
    ax_d = fig.add_subplot(gs[1, 0])
    per_sample = summary.sample_summary
    x = np.arange(len(per_sample))
    bottom = np.zeros(len(per_sample))
    for cls in classes:
        ax_d.bar(x, per_sample[cls].values, bottom=bottom, width=1.0,
                 color=VARIANT_COLORS[cls], label=cls)
        bottom += per_sample[cls].values
    if len(per_sample):
        median = per_sample['total'].median()
        ax_d.axhline(median, color='black', linestyle='--', linewidth=1.5)
        ax_d.text(0.98, 0.95, f'Median: {median:.0f}', transform=ax_d.transAxes,
                  ha='right', va='top', fontsize=9, fontweight='bold')
    ax_d.set_xticks([])
    ax_d.set_xlabel('Samples', fontsize=11)
    ax_d.set_ylabel('Variants', fontsize=11)
    _style(ax_d, 'Variants per Sample')

    # ========== PANEL E: Variant Classification Summary ==========
    ax_e = fig.add_subplot(gs[1, 1])
    if classes:
        long = per_sample.melt(id_vars=SAMPLE_COL, value_vars=classes,
                               var_name=CLASS_COL, value_name='count')
        sns.boxplot(data=long, x=CLASS_COL, y='count', hue=CLASS_COL, order=classes,
                    palette=VARIANT_COLORS, legend=False, ax=ax_e)
        ax_e.set_xticks(range(len(classes)))
        ax_e.set_xticklabels([c.replace('_', '\n') for c in classes], fontsize=7)
    else:
        ax_e.text(0.5, 0.5, 'No data', ha='center', va='center', transform=ax_e.transAxes)
    ax_e.set_xlabel('')
    _style(ax_e, 'Variant Classification Summary')

    # ========== PANEL F: Top Mutated Genes ==========
    ax_f = fig.add_subplot(gs[1, 2])
    top_genes = summary.gene_summary.head(top)
    y_pos = np.arange(len(top_genes))
    left = np.zeros(len(top_genes))
    for cls in classes:
        ax_f.barh(y_pos, top_genes[cls].values, left=left, color=VARIANT_COLORS[cls])
        left += top_genes[cls].values
    n_samples = summary.n_samples
    for i, (total, mutated) in enumerate(zip(left, top_genes['MutatedSamples'])):
        pct = 100 * mutated / n_samples if n_samples else 0.0
        ax_f.text(total, i, f' {pct:.0f}%', va='center', fontsize=9, fontweight='bold')
    ax_f.set_yticks(y_pos)
    ax_f.set_yticklabels(top_genes[GENE_COL], fontsize=9)
    ax_f.invert_yaxis()
    ax_f.grid(axis='x', alpha=0.3, linestyle='--')
    _style(ax_f, f'Top {top} Mutated Genes')

    if classes:
        handles, labels = ax_d.get_legend_handles_labels()
        fig.legend(handles, labels, loc='lower center', ncol=min(len(classes), 5),
                   fontsize=9, frameon=False)

    if path:
        fig.savefig(path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        log(f"✓ MAF summary figure saved: {path}")

    return fig
