import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import pandas as pd  # noqa: E402
import pytest  # noqa: E402

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))


def mutation_row(barcode, gene, classification, **extra):
    row = {
        "Hugo_Symbol": gene,
        "Variant_Classification": classification,
        "Tumor_Sample_Barcode": barcode,
    }
    row.update(extra)
    return row


@pytest.fixture
def cohort_maf() -> pd.DataFrame:
    """Small TCGA-style cohort: three patients, one without clinical data."""
    rows = [
        mutation_row("TCGA-A1-0001-01A-11D", "TP53", "Missense_Mutation",
                     Variant_Type="SNP", Reference_Allele="G", Tumor_Seq_Allele2="A"),
        mutation_row("TCGA-A1-0001-01A-11D", "TP53", "Nonsense_Mutation",
                     Variant_Type="SNP", Reference_Allele="C", Tumor_Seq_Allele2="T"),
        mutation_row("TCGA-A1-0001-01A-11D", "PIK3CA", "Missense_Mutation",
                     Variant_Type="SNP", Reference_Allele="A", Tumor_Seq_Allele2="G"),
        mutation_row("TCGA-A2-0002-01A-11D", "PIK3CA", "Missense_Mutation",
                     Variant_Type="SNP", Reference_Allele="T", Tumor_Seq_Allele2="C"),
        mutation_row("TCGA-A2-0002-01A-11D", "CDH1", "Frame_Shift_Del",
                     Variant_Type="DEL", Reference_Allele="A", Tumor_Seq_Allele2="-"),
        mutation_row("TCGA-A2-0002-01A-11D", "TTN", "Silent",
                     Variant_Type="SNP", Reference_Allele="C", Tumor_Seq_Allele2="A"),
        mutation_row("TCGA-A3-0003-01A-11D", "GATA3", "Frame_Shift_Ins",
                     Variant_Type="INS", Reference_Allele="-", Tumor_Seq_Allele2="T"),
        mutation_row("TCGA-A3-0003-01A-11D", "TTN", "Intron",
                     Variant_Type="SNP", Reference_Allele="G", Tumor_Seq_Allele2="T"),
    ]
    return pd.DataFrame(rows)


@pytest.fixture
def cohort_clinical() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "bcr_patient_barcode": ["TCGA-A1-0001", "TCGA-A2-0002", "TCGA-A9-0009"],
            "vital_status": ["Alive", "Dead", "Alive"],
            "age_at_diagnosis": [51, 63, 70],
        }
    )
