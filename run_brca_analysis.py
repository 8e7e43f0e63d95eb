#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
run_brca_analysis.py

TCGA-BRCA MUTATION PREVALENCE ANALYSIS
======================================
Load -> join -> filter -> top genes -> prevalence, plus the MAF summary
figure.

INPUTS:
  - data/maf_files/ (or a single .maf/.maf.gz file)
  - data/clinical.tsv

OUTPUTS:
  - results/top_mutated_genes.csv
  - results/gene_prevalence.csv
  - results/maf_gene_summary.csv
  - reports/analysis_report.json
  - reports/analysis_log.txt
  - figures/maf_summary/maf_summary.png
"""

import os
import json
import numpy as np
from datetime import datetime

from brca_common import (
    CLINICAL_ID_COL,
    CLINICAL_PATH,
    FIGURE_FILE,
    GENE_SUMMARY_FILE,
    LOG_FILE,
    MAF_PATH,
    PREVALENCE_FILE,
    REPORT_FILE,
    TOP_GENES_FILE,
    TOP_N,
    AnalysisError,
    log,
    reset_log,
    save_log,
    section_header,
)
from brca_maf_summary import build_maf_summary, plot_maf_summary
from brca_mutations import join_clinical, load_clinical, load_maf
from brca_prevalence import analyze_prevalence


def make_serializable(obj):
    """Convert numpy/pandas types to native Python types for JSON."""
    if isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, dict):
        return {k: make_serializable(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [make_serializable(item) for item in obj]
    else:
        return obj


def save_outputs(result, maf_summary):
    """Save tables, JSON report and figure."""
    section_header("STEP 8: SAVE OUTPUTS")

    for path in [TOP_GENES_FILE, PREVALENCE_FILE, GENE_SUMMARY_FILE, REPORT_FILE, FIGURE_FILE]:
        os.makedirs(os.path.dirname(path), exist_ok=True)

    result.top_genes.to_csv(TOP_GENES_FILE, index=False)
    log(f"  ✓ Saved: {TOP_GENES_FILE}")
    result.prevalence.to_csv(PREVALENCE_FILE, index=False)
    log(f"  ✓ Saved: {PREVALENCE_FILE}")
    maf_summary.gene_summary.to_csv(GENE_SUMMARY_FILE, index=False)
    log(f"  ✓ Saved: {GENE_SUMMARY_FILE}")

    report = {
        "timestamp": datetime.now().isoformat(),
        "total_patients": result.total_patients,
        "top_genes": dict(zip(result.top_genes["gene"], result.top_genes["count"])),
        "prevalence": {
            gene: {"patients": patients, "fraction": fraction}
            for gene, patients, fraction in zip(result.prevalence["gene"],
                                                result.prevalence["patients"],
                                                result.prevalence["fraction"])
        },
        "maf_summary": maf_summary.summary(),
    }
    with open(REPORT_FILE, 'w') as f:
        json.dump(make_serializable(report), f, indent=2)
    log(f"  ✓ Saved: {REPORT_FILE}")

    plot_maf_summary(maf_summary, FIGURE_FILE)


def main(maf_path=MAF_PATH, clinical_path=CLINICAL_PATH,
         id_col=CLINICAL_ID_COL, top_n=TOP_N):
    """Main execution pipeline."""
    reset_log()
    section_header("TCGA-BRCA MUTATION PREVALENCE ANALYSIS")
    log(f"MAF input: {maf_path}")
    log(f"Clinical input: {clinical_path}")

    try:
        maf = load_maf(maf_path)
        clinical = load_clinical(clinical_path, id_col)
        joined = join_clinical(maf, clinical, id_col)
        result = analyze_prevalence(joined, top_n)
        maf_summary = build_maf_summary(maf, clinical, id_col)
        save_outputs(result, maf_summary)
    except (AnalysisError, FileNotFoundError) as e:
        log(f"✗ {type(e).__name__}: {e}", "ERROR")
        log("\n❌ Pipeline stopped.", "ERROR")
        save_log(LOG_FILE)
        raise

    section_header("✅ ANALYSIS COMPLETE")
    log(f"  Patients: {result.total_patients}")
    log(f"  Top gene: {result.top_genes['gene'].iloc[0] if len(result.top_genes) else 'n/a'}")
    log(f"  📁 Log: {LOG_FILE}")
    save_log(LOG_FILE)

    return result, maf_summary


if __name__ == "__main__":
    main()
