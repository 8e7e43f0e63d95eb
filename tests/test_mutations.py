import gzip
from pathlib import Path

import pandas as pd
import pytest

from brca_common import NON_SILENT_VARIANTS, MalformedKeyError, SchemaValidationError
from brca_mutations import (
    derive_patient_barcode,
    filter_non_silent,
    join_clinical,
    load_clinical,
    load_maf,
)

MAF_HEADER = "Hugo_Symbol\tVariant_Classification\tTumor_Sample_Barcode\tVariant_Type\n"


def write_maf(path: Path, rows: list[str], version_line: bool = True) -> None:
    text = ("#version 2.4\n" if version_line else "") + MAF_HEADER + "".join(rows)
    if path.suffix == ".gz":
        with gzip.open(path, "wt") as stream:
            stream.write(text)
    else:
        path.write_text(text)


def test_load_maf_skips_version_header(tmp_path: Path) -> None:
    maf_path = tmp_path / "cohort.maf"
    write_maf(maf_path, [
        "TP53\tMissense_Mutation\tTCGA-A1-0001-01A\tSNP\n",
        "CDH1\tSilent\tTCGA-A2-0002-01A\tSNP\n",
    ])

    maf = load_maf(str(maf_path))

    assert len(maf) == 2
    assert list(maf["Hugo_Symbol"]) == ["TP53", "CDH1"]
    assert "Variant_Type" in maf.columns


def test_load_maf_consolidates_directory(tmp_path: Path) -> None:
    write_maf(tmp_path / "a.maf.gz", ["TP53\tMissense_Mutation\tTCGA-A1-0001-01A\tSNP\n"])
    write_maf(tmp_path / "b.maf", ["GATA3\tFrame_Shift_Ins\tTCGA-A3-0003-01A\tINS\n"])
    write_maf(tmp_path / "empty.maf", [])
    (tmp_path / "notes.txt").write_text("ignored")

    maf = load_maf(str(tmp_path))

    assert sorted(maf["Hugo_Symbol"]) == ["GATA3", "TP53"]
    assert maf.index.tolist() == [0, 1]


def test_load_maf_directory_without_maf_files(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_maf(str(tmp_path))


def test_load_maf_reports_missing_column(tmp_path: Path) -> None:
    maf_path = tmp_path / "bad.maf"
    maf_path.write_text("Hugo_Symbol\tTumor_Sample_Barcode\nTP53\tTCGA-A1-0001-01A\n")

    with pytest.raises(SchemaValidationError) as excinfo:
        load_maf(str(maf_path))

    assert excinfo.value.column == "Variant_Classification"
    assert "Variant_Classification" in str(excinfo.value)


def test_load_clinical_tsv_treats_gdc_placeholder_as_missing(tmp_path: Path) -> None:
    clinical_path = tmp_path / "clinical.tsv"
    clinical_path.write_text(
        "bcr_patient_barcode\tage_at_diagnosis\n"
        "TCGA-A1-0001\t51\n"
        "TCGA-A2-0002\t'--\n"
    )

    clinical = load_clinical(str(clinical_path))

    assert clinical["bcr_patient_barcode"].tolist() == ["TCGA-A1-0001", "TCGA-A2-0002"]
    assert pd.isna(clinical.loc[1, "age_at_diagnosis"])


def test_load_clinical_csv_with_custom_id(tmp_path: Path) -> None:
    clinical_path = tmp_path / "clinical.csv"
    clinical_path.write_text("patient_id,stage\nTCGA-A1-0001,Stage II\n")

    clinical = load_clinical(str(clinical_path), id_col="patient_id")

    assert clinical.shape == (1, 2)


def test_load_clinical_missing_id_column(tmp_path: Path) -> None:
    clinical_path = tmp_path / "clinical.tsv"
    clinical_path.write_text("case_id\tstage\nTCGA-A1-0001\tStage II\n")

    with pytest.raises(SchemaValidationError, match="bcr_patient_barcode"):
        load_clinical(str(clinical_path))


def test_derive_patient_barcode_takes_twelve_characters(cohort_maf: pd.DataFrame) -> None:
    keyed = derive_patient_barcode(cohort_maf)

    assert keyed["patient_barcode"].iloc[0] == "TCGA-A1-0001"
    assert "patient_barcode" not in cohort_maf.columns


def test_short_barcode_raises_malformed_key() -> None:
    mutations = pd.DataFrame(
        {
            "Hugo_Symbol": ["TP53", "TP53"],
            "Variant_Classification": ["Missense_Mutation", "Missense_Mutation"],
            "Tumor_Sample_Barcode": ["TCGA-A1-0001-01A", "SHORT"],
        }
    )

    with pytest.raises(MalformedKeyError) as excinfo:
        derive_patient_barcode(mutations)

    assert excinfo.value.barcodes == ["SHORT"]
    assert excinfo.value.length == 12


def test_missing_barcode_raises_malformed_key() -> None:
    mutations = pd.DataFrame(
        {
            "Hugo_Symbol": ["TP53"],
            "Variant_Classification": ["Missense_Mutation"],
            "Tumor_Sample_Barcode": [None],
        }
    )

    with pytest.raises(MalformedKeyError):
        derive_patient_barcode(mutations)


def test_join_keeps_every_mutation_row_in_order(
    cohort_maf: pd.DataFrame, cohort_clinical: pd.DataFrame
) -> None:
    joined = join_clinical(cohort_maf, cohort_clinical)

    assert len(joined) == len(cohort_maf)
    assert joined["Hugo_Symbol"].tolist() == cohort_maf["Hugo_Symbol"].tolist()
    assert joined["Tumor_Sample_Barcode"].tolist() == cohort_maf["Tumor_Sample_Barcode"].tolist()

    matched = joined[joined["patient_barcode"] == "TCGA-A2-0002"]
    assert set(matched["vital_status"]) == {"Dead"}

    unmatched = joined[joined["patient_barcode"] == "TCGA-A3-0003"]
    assert len(unmatched) == 2
    assert unmatched["vital_status"].isna().all()


def test_join_rejects_duplicate_clinical_ids(cohort_maf: pd.DataFrame) -> None:
    clinical = pd.DataFrame({"bcr_patient_barcode": ["TCGA-A1-0001", "TCGA-A1-0001"]})

    with pytest.raises(SchemaValidationError, match="not unique"):
        join_clinical(cohort_maf, clinical)


def test_join_requires_clinical_id_column(cohort_maf: pd.DataFrame) -> None:
    clinical = pd.DataFrame({"case_id": ["TCGA-A1-0001"]})

    with pytest.raises(SchemaValidationError) as excinfo:
        join_clinical(cohort_maf, clinical)

    assert excinfo.value.column == "bcr_patient_barcode"
    assert excinfo.value.table == "clinical"


def test_filter_keeps_only_non_silent(cohort_maf: pd.DataFrame) -> None:
    filtered = filter_non_silent(cohort_maf)

    assert set(filtered["Variant_Classification"]) <= NON_SILENT_VARIANTS
    excluded = cohort_maf.drop(filtered.index)
    assert not excluded["Variant_Classification"].isin(NON_SILENT_VARIANTS).any()
    assert len(filtered) == 6


def test_filter_is_case_sensitive() -> None:
    df = pd.DataFrame(
        {"Variant_Classification": ["missense_mutation", "Missense_Mutation", "Splice_Site"]}
    )

    filtered = filter_non_silent(df)

    assert filtered["Variant_Classification"].tolist() == ["Missense_Mutation", "Splice_Site"]


def test_filter_has_nine_labels() -> None:
    assert len(NON_SILENT_VARIANTS) == 9
    assert "Silent" not in NON_SILENT_VARIANTS


def test_join_rejects_clinical_with_patient_barcode_column(
    cohort_maf: pd.DataFrame, cohort_clinical: pd.DataFrame
) -> None:
    clinical = cohort_clinical.assign(patient_barcode=["x", "y", "z"])

    with pytest.raises(SchemaValidationError) as excinfo:
        join_clinical(cohort_maf, clinical)

    assert excinfo.value.column == "patient_barcode"
    assert "already present" in str(excinfo.value)


def test_join_on_patient_barcode_column_itself(cohort_maf: pd.DataFrame) -> None:
    clinical = pd.DataFrame({"patient_barcode": ["TCGA-A1-0001"], "stage": ["Stage II"]})

    joined = join_clinical(cohort_maf, clinical, id_col="patient_barcode")

    assert len(joined) == len(cohort_maf)
    assert joined.loc[0, "stage"] == "Stage II"


def test_load_maf_keeps_na_gene_symbol_as_string(tmp_path: Path) -> None:
    maf_path = tmp_path / "cohort.maf"
    write_maf(maf_path, [
        "NA\tMissense_Mutation\tTCGA-A1-0001-01A\tSNP\n",
        "TP53\tMissense_Mutation\tTCGA-A1-0001-01A\t\n",
    ])

    maf = load_maf(str(maf_path))

    assert maf["Hugo_Symbol"].tolist() == ["NA", "TP53"]
    assert pd.isna(maf.loc[1, "Variant_Type"])


def test_load_clinical_keeps_ids_as_strings(tmp_path: Path) -> None:
    clinical_path = tmp_path / "clinical.csv"
    clinical_path.write_text("patient_id,age\n000123456789,51\n")

    clinical = load_clinical(str(clinical_path), id_col="patient_id")

    assert clinical["patient_id"].tolist() == ["000123456789"]
    assert clinical.loc[0, "age"] == 51
