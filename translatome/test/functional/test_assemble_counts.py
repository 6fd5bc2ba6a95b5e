#!/usr/bin/env python
"""Test suite for :py:mod:`translatome.bin.assemble_counts`"""
import os
import pandas as pd
import pytest

from translatome.bin.assemble_counts import main, output_names
from translatome.util.services.exceptions import ReconciliationAmbiguous,\
                                                 DuplicateSampleMapping
from translatome.test.common import featurecounts_text, write_text, make_matrix
from translatome.test.functional.base import run_script, assert_table_equal

METADATA = """Translatome cohort, curated
Sample ID,Subgroup,RNA-seq files
MB07,SHH,MB07_S3_R1_001.fastq.gz;MB07_S3_R2_001.fastq.gz
MB01,WNT,MB01_S1_R1_001.fastq.gz;MB01_S1_R2_001.fastq.gz
MB02,G3,MB02_S2_R1_001.fastq.gz
"""

SAMPLES = ["MB01_S1_R1_001","MB02_S2_R1_001","MB07_S3_R1_001","MB99_S9_R1_001"]
ROWS = [("ENSG01",1500,[10,0,3,8]),
        ("ENSG02",900,[5,7,0,8]),
        ("ENSG03",2400,[0,0,1,8]),
       ]
CDS_ROWS = [("ENSG01",1200,[20,1,1,8]),
            ("ENSG02",600,[4,4,4,8]),
           ]


@pytest.fixture
def inputs(tmp_path):
    tmp_path = str(tmp_path)
    return { "dir"       : tmp_path,
             "metadata"  : write_text(tmp_path,"metadata.csv",METADATA),
             "counts"    : write_text(tmp_path,"genes.txt",featurecounts_text(SAMPLES,ROWS)),
             "cds"       : write_text(tmp_path,"cds.txt",featurecounts_text(SAMPLES[::-1],[(X,Y,Z[::-1]) for X,Y,Z in CDS_ROWS])),
             "outbase"   : os.path.join(tmp_path,"assembled"),
           }

def _argstr(inputs,extra=""):
    return "%s --metadata %s --metadata_skiprows 1 --metadata_columns 'RNA-seq files=rnaseq_files' " % (inputs["outbase"],inputs["metadata"]) +\
           "--assay rna --counts %s %s" % (inputs["counts"],extra)


@pytest.mark.functional
def test_assemble_featurecounts(inputs):
    with pytest.warns(Warning,match="MB99_S9_R1_001"):
        run_script(main,_argstr(inputs))

    counts_file, lengths_file, samples_file = output_names(inputs["outbase"])
    expected = make_matrix({ "ENSG01" : [3,10,0],
                             "ENSG02" : [0,5,7],
                             "ENSG03" : [1,0,0],
                           },["MB07","MB01","MB02"])
    found = assert_table_equal(counts_file,expected)
    assert list(found.columns) == ["MB07","MB01","MB02"]

    assert_table_equal(lengths_file,make_matrix({ "ENSG01" : [1500], "ENSG02" : [900], "ENSG03" : [2400] },["length"]))

    mapping = pd.read_csv(samples_file,sep="\t",comment="#")
    assert list(mapping["candidate"]) == ["MB07_S3_R1_001","MB01_S1_R1_001","MB02_S2_R1_001"]
    assert list(mapping["sample_id"]) == ["MB07","MB01","MB02"]

@pytest.mark.functional
def test_assemble_with_canonical_table(inputs):
    with pytest.warns(Warning):
        run_script(main,_argstr(inputs,"--canonical_counts %s" % inputs["cds"]))

    counts_file, lengths_file, _ = output_names(inputs["outbase"])
    expected = make_matrix({ "ENSG01"     : [3,10,0],
                             "ENSG02"     : [0,5,7],
                             "ENSG03"     : [1,0,0],
                             "ENSG01_CDS" : [1,20,1],
                             "ENSG02_CDS" : [4,4,4],
                           },["MB07","MB01","MB02"])
    assert_table_equal(counts_file,expected)
    lengths = assert_table_equal(lengths_file,make_matrix({ "ENSG01" : [1500], "ENSG02" : [900], "ENSG03" : [2400],
                                                            "ENSG01_CDS" : [1200], "ENSG02_CDS" : [600] },["length"]))
    assert list(lengths.index) == ["ENSG01","ENSG02","ENSG03","ENSG01_CDS","ENSG02_CDS"]

@pytest.mark.functional
def test_assemble_skips_existing_outputs(inputs):
    with pytest.warns(Warning):
        run_script(main,_argstr(inputs))

    counts_file = output_names(inputs["outbase"])[0]
    with open(counts_file,"w") as fout:
        fout.write("sentinel\n")

    run_script(main,_argstr(inputs))
    with open(counts_file) as fh:
        assert fh.read() == "sentinel\n"

    run_script(main,_argstr(inputs,"--force"))
    with open(counts_file) as fh:
        assert fh.read() != "sentinel\n"

@pytest.mark.functional
def test_assemble_ambiguous_identifier(inputs):
    metadata = METADATA + "MB01b,WNT,MB01_S1_R1_001.fastq.gz\n"
    write_text(inputs["dir"],"metadata.csv",metadata)
    with pytest.raises(ReconciliationAmbiguous):
        run_script(main,_argstr(inputs))

@pytest.mark.functional
def test_assemble_shared_samples(inputs):
    metadata = METADATA.replace("MB02_S2_R1_001.fastq.gz","MB02_S2_R1_001.fastq.gz;MB99_S9_R1_001.fastq.gz")
    write_text(inputs["dir"],"metadata.csv",metadata)
    with pytest.raises(DuplicateSampleMapping):
        run_script(main,_argstr(inputs,"--collect all"))

    run_script(main,_argstr(inputs,"--collect all --allow_shared_samples --force"))
    expected = make_matrix({ "ENSG01" : [3,10,8],
                             "ENSG02" : [0,5,15],
                             "ENSG03" : [1,0,8],
                           },["MB07","MB01","MB02"])
    assert_table_equal(output_names(inputs["outbase"])[0],expected)
