#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
brca_common.py

SHARED CONFIGURATION, LOGGING AND ERRORS
========================================
Constants and helpers used by every step of the TCGA-BRCA mutation
prevalence analysis.
"""

import os
from datetime import datetime

# ============================================================================
# CONFIGURATION
# ============================================================================

# Paths
DATA_DIR = "data"
RESULTS_DIR = "results"
REPORT_DIR = "reports"
FIG_DIR = os.path.join("figures", "maf_summary")

MAF_PATH = os.path.join(DATA_DIR, "maf_files")
CLINICAL_PATH = os.path.join(DATA_DIR, "clinical.tsv")

TOP_GENES_FILE = os.path.join(RESULTS_DIR, "top_mutated_genes.csv")
PREVALENCE_FILE = os.path.join(RESULTS_DIR, "gene_prevalence.csv")
GENE_SUMMARY_FILE = os.path.join(RESULTS_DIR, "maf_gene_summary.csv")
REPORT_FILE = os.path.join(REPORT_DIR, "analysis_report.json")
LOG_FILE = os.path.join(REPORT_DIR, "analysis_log.txt")
FIGURE_FILE = os.path.join(FIG_DIR, "maf_summary.png")

# Analysis parameters
PATIENT_ID_LENGTH = 12      # TCGA-XX-XXXX
TOP_N = 10                  # Genes reported in the top-N tables

# Column names
SAMPLE_COL = "Tumor_Sample_Barcode"
GENE_COL = "Hugo_Symbol"
CLASS_COL = "Variant_Classification"
PATIENT_COL = "patient_barcode"
CLINICAL_ID_COL = "bcr_patient_barcode"

REQUIRED_MAF_COLS = [GENE_COL, CLASS_COL, SAMPLE_COL]

# Non-silent variant types (whitelist approach)
NON_SILENT_VARIANTS = frozenset({
    "Frame_Shift_Del",
    "Frame_Shift_Ins",
    "In_Frame_Del",
    "In_Frame_Ins",
    "Missense_Mutation",
    "Nonsense_Mutation",
    "Nonstop_Mutation",
    "Splice_Site",
    "Translation_Start_Site"
})

# ============================================================================
# LOGGING
# ============================================================================

LOG = []

def log(msg, level="INFO"):
    """Log with timestamp."""
    timestamp = datetime.now().strftime("%H:%M:%S")
    formatted = f"[{timestamp}] [{level}] {msg}"
    print(formatted)
    LOG.append(formatted)

def reset_log():
    """Clear the buffered log before a new run."""
    LOG.clear()

def section_header(title):
    """Print section header."""
    border = "=" * 80
    log(f"\n{border}")
    log(f"  {title}")
    log(f"{border}\n")

def save_log(path=LOG_FILE):
    """Write the buffered log to disk."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write('\n'.join(LOG))
    return path

# ============================================================================
# ERRORS
# ============================================================================

class AnalysisError(Exception):
    """Base class for analysis failures."""


class MalformedKeyError(AnalysisError):
    """A sample barcode is too short to yield a patient barcode."""

    def __init__(self, barcodes, length=PATIENT_ID_LENGTH):
        self.barcodes = list(barcodes)
        self.length = length
        shown = ", ".join(repr(b) for b in self.barcodes[:5])
        more = f" (+{len(self.barcodes) - 5} more)" if len(self.barcodes) > 5 else ""
        super().__init__(
            f"{len(self.barcodes)} sample barcode(s) shorter than "
            f"{length} characters: {shown}{more}"
        )


class SchemaValidationError(AnalysisError):
    """A table does not match the columns the analysis expects."""

    def __init__(self, column, table, reason=None):
        self.column = column
        self.table = table
        if reason is None:
            reason = f"Column '{column}' not found in {table} table"
        super().__init__(reason)


def require_columns(df, columns, table):
    """Raise SchemaValidationError for the first column missing from df."""
    for col in columns:
        if col not in df.columns:
            raise SchemaValidationError(col, table)
