#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
brca_mutations.py

MUTATION + CLINICAL LOADING, JOIN AND FILTER
============================================
  1. Load MAF data (single file or a directory of per-sample MAFs)
  2. Load clinical data
  3. Derive the 12-character patient barcode and left-join clinical data
  4. Keep non-silent variants only (whitelist)

Required columns are checked as soon as a table is loaded, so a bad input
fails with the missing column name instead of a KeyError deep in the
analysis.
"""

import os
import glob
import gzip
from io import StringIO

import pandas as pd
from tqdm import tqdm

from brca_common import (
    CLASS_COL,
    CLINICAL_ID_COL,
    NON_SILENT_VARIANTS,
    PATIENT_COL,
    PATIENT_ID_LENGTH,
    REQUIRED_MAF_COLS,
    SAMPLE_COL,
    MalformedKeyError,
    SchemaValidationError,
    log,
    require_columns,
    section_header,
)

MAF_PATTERNS = ['*.maf', '*.maf.gz']

# GDC clinical exports mark missing values with '--
CLINICAL_NA_VALUES = ["'--", "--", "[Not Available]", "[Not Applicable]"]

# ============================================================================
# STEP 1: LOAD MAF
# ============================================================================

def read_single_maf(filepath):
    """
    Read a single MAF file (handles .maf and .maf.gz).
    '#' header lines (e.g. '#version 2.4') are skipped.
    """
    opener = gzip.open if filepath.endswith('.gz') else open
    with opener(filepath, 'rt') as f:
        lines = [line for line in f if not line.startswith('#')]

    if not lines:
        return pd.DataFrame(columns=REQUIRED_MAF_COLS)

    # Only empty cells are missing; "NA" stays a gene symbol
    header = lines[0].rstrip("\r\n").split("\t")
    dtype = {col: str for col in REQUIRED_MAF_COLS if col in header}
    return pd.read_csv(StringIO(''.join(lines)), sep='\t', dtype=dtype,
                       keep_default_na=False, na_values=[""], low_memory=False)


def discover_maf_files(maf_dir):
    """Find all MAF files in a directory."""
    maf_files = []
    for pattern in MAF_PATTERNS:
        maf_files.extend(glob.glob(os.path.join(maf_dir, pattern)))
    return sorted(maf_files)


def consolidate_maf_files(maf_files):
    """Read all MAF files and consolidate into a single DataFrame."""
    all_mutations = []
    failed, empty = 0, 0

    for filepath in tqdm(maf_files, desc="📖 Reading MAF files"):
        filename = os.path.basename(filepath)

        try:
            df = read_single_maf(filepath)
        except (OSError, EOFError, UnicodeDecodeError, pd.errors.ParserError) as e:
            tqdm.write(f"  ⚠️  Failed to read: {filename} ({e})")
            failed += 1
            continue

        if len(df) == 0:
            tqdm.write(f"  ⚠️  Empty file: {filename}")
            empty += 1
            continue

        all_mutations.append(df)

    log(f"  Files processed: {len(all_mutations)} / {len(maf_files)}")
    if failed:
        log(f"  Files failed: {failed}", "WARN")
    if empty:
        log(f"  Files empty: {empty}", "WARN")

    if not all_mutations:
        raise FileNotFoundError("No readable MAF files found")

    return pd.concat(all_mutations, ignore_index=True)


def load_maf(path):
    """
    Load mutation records from a MAF file or a directory of MAF files.

    Raises SchemaValidationError if Hugo_Symbol, Variant_Classification or
    Tumor_Sample_Barcode is missing.
    """
    section_header("STEP 1: LOAD MUTATION DATA")

    if os.path.isdir(path):
        log(f"Searching for MAF files in: {path}")
        maf_files = discover_maf_files(path)
        if not maf_files:
            raise FileNotFoundError(f"No MAF files found in {path} (expected *.maf or *.maf.gz)")
        log(f"✓ Found {len(maf_files)} MAF files")
        maf = consolidate_maf_files(maf_files)
    else:
        log(f"Reading MAF file: {path}")
        maf = read_single_maf(path)

    require_columns(maf, REQUIRED_MAF_COLS, "mutation")

    log(f"  Mutations: {len(maf):,}")
    log(f"  Samples: {maf[SAMPLE_COL].nunique()}")
    return maf

# ============================================================================
# STEP 2: LOAD CLINICAL
# ============================================================================

def load_clinical(path, id_col=CLINICAL_ID_COL):
    """Load clinical records (.tsv/.txt, .csv or pickled DataFrame)."""
    section_header("STEP 2: LOAD CLINICAL DATA")
    log(f"Reading clinical file: {path}")

    if path.endswith('.pkl'):
        clinical = pd.read_pickle(path)
    else:
        sep = ',' if path.endswith('.csv') else '\t'
        header = pd.read_csv(path, sep=sep, nrows=0).columns
        dtype = {id_col: str} if id_col in header else None
        clinical = pd.read_csv(path, sep=sep, na_values=CLINICAL_NA_VALUES,
                               dtype=dtype, low_memory=False)

    require_columns(clinical, [id_col], "clinical")

    log(f"  Shape: {clinical.shape}")
    log(f"  Patients: {clinical[id_col].nunique()}")
    return clinical

# ============================================================================
# STEP 3: JOIN
# ============================================================================

def derive_patient_barcode(mutations, length=PATIENT_ID_LENGTH):
    """
    Add patient_barcode = first `length` characters of Tumor_Sample_Barcode.

    Barcodes that are missing or shorter than `length` raise
    MalformedKeyError; they are never truncated to a partial key.
    """
    require_columns(mutations, [SAMPLE_COL], "mutation")

    barcodes = mutations[SAMPLE_COL]
    malformed = barcodes.isna() | (barcodes.astype(str).str.len() < length)
    if malformed.any():
        raise MalformedKeyError(barcodes[malformed].tolist(), length)

    keyed = mutations.copy()
    keyed[PATIENT_COL] = barcodes.astype(str).str.slice(0, length)
    return keyed


def join_clinical(mutations, clinical, id_col=CLINICAL_ID_COL):
    """
    Left-join clinical data onto mutation rows by patient barcode.

    Every mutation row appears exactly once, in input order; clinical
    fields are NaN where the patient has no clinical record.
    """
    section_header("STEP 3: JOIN CLINICAL DATA")

    require_columns(clinical, [id_col], "clinical")
    keyed = derive_patient_barcode(mutations)

    if id_col != PATIENT_COL and PATIENT_COL in clinical.columns:
        raise SchemaValidationError(
            PATIENT_COL, "clinical",
            reason=f"Column '{PATIENT_COL}' already present in clinical table; "
                   f"cannot key the join on '{id_col}'",
        )

    clinical = clinical[clinical[id_col].notna()]
    duplicated = clinical[id_col].duplicated()
    if duplicated.any():
        example = clinical.loc[duplicated, id_col].iloc[0]
        raise SchemaValidationError(
            id_col, "clinical",
            reason=f"Column '{id_col}' in clinical table is not unique (e.g. {example!r})",
        )

    clinical_keyed = clinical.rename(columns={id_col: PATIENT_COL})
    clinical_keyed[PATIENT_COL] = clinical_keyed[PATIENT_COL].astype(str)

    mutation_ids = set(keyed[PATIENT_COL])
    clinical_ids = set(clinical_keyed[PATIENT_COL])
    log(f"📇 Patient ID overlap:")
    log(f"  Mutation IDs: {len(mutation_ids)}")
    log(f"  Clinical IDs: {len(clinical_ids)}")
    log(f"  Overlap: {len(mutation_ids & clinical_ids)}")
    log(f"  Mutation only: {len(mutation_ids - clinical_ids)}")
    log(f"  Clinical only: {len(clinical_ids - mutation_ids)}")

    # Left join keeps left row order
    joined = pd.merge(keyed, clinical_keyed, on=PATIENT_COL, how="left",
                      suffixes=("", "_clinical"), validate="many_to_one")

    log(f"\n💥 Join results: {len(joined):,} rows ({len(keyed):,} mutations)")
    return joined

# ============================================================================
# STEP 4: FILTER
# ============================================================================

def filter_non_silent(df, allowed=NON_SILENT_VARIANTS):
    """Keep rows whose Variant_Classification is in the whitelist (exact match)."""
    section_header("STEP 4: FILTER NON-SILENT VARIANTS")
    require_columns(df, [CLASS_COL], "mutation")

    n_original = len(df)
    log(f"  Keeping: {', '.join(sorted(allowed))}")

    mask = df[CLASS_COL].isin(allowed)
    filtered = df[mask].copy()

    n_filtered = len(filtered)
    pct_kept = 100 * n_filtered / n_original if n_original else 0.0
    log(f"  Kept: {n_filtered:,} / {n_original:,} ({pct_kept:.1f}%)")
    log(f"  Removed: {n_original - n_filtered:,} other variants")

    removed = df.loc[~mask, CLASS_COL].value_counts()
    for var_type, count in removed.head(5).items():
        log(f"    {var_type}: {count:,}")

    return filtered
