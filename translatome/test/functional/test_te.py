#!/usr/bin/env python
"""Test suite for :py:mod:`translatome.bin.te`"""
import os
import numpy
import pytest

from translatome.bin.te import main, output_names
from translatome.test.common import write_text, make_matrix
from translatome.test.functional.base import run_script, assert_table_equal

RIBO = """feature_id\tS1\tS2
A_CDS\t30\t10
B\t10\t10
C\t1\t1
"""

RNA = """feature_id\tS2\tS1
B\t30\t10
A_CDS\t10\t10
D\t50\t50
"""

LENGTHS = """feature_id\tlength
A_CDS\t1000
B\t1000
C\t1000
D\t1000
"""


@pytest.fixture
def inputs(tmp_path):
    tmp_path = str(tmp_path)
    return { "ribo"    : write_text(tmp_path,"ribo.txt",RIBO),
             "rna"     : write_text(tmp_path,"rna.txt",RNA),
             "lengths" : write_text(tmp_path,"lengths.txt",LENGTHS),
             "outbase" : os.path.join(tmp_path,"te"),
           }

def _argstr(inputs,extra=""):
    return "%s --granularity orf --ribo_counts %s --rna_counts %s --rna_lengths %s %s" % (
           inputs["outbase"],inputs["ribo"],inputs["rna"],inputs["lengths"],extra)


@pytest.mark.functional
def test_te(inputs):
    run_script(main,_argstr(inputs))
    outfiles = output_names(inputs["outbase"])

    # occupancy and transcript normalized over A_CDS and B only
    ppm = make_matrix({ "A_CDS" : [750000,500000], "B" : [250000,500000] },["S1","S2"])
    tpm = make_matrix({ "A_CDS" : [500000,250000], "B" : [500000,750000] },["S1","S2"])
    raw = ppm / tpm
    logged = numpy.log2(raw + 0.1)
    centered = logged.sub(logged.median(axis=1),axis=0)

    assert_table_equal(outfiles["ppm"],ppm)
    assert_table_equal(outfiles["tpm"],tpm)
    assert_table_equal(outfiles["te"],raw)
    assert_table_equal(outfiles["te_log2"],logged)
    assert_table_equal(outfiles["te_centered"],centered)

@pytest.mark.functional
def test_te_overrides(inputs):
    run_script(main,_argstr(inputs,"--pseudocount 1 --centering none"))
    outfiles = output_names(inputs["outbase"])
    logged = numpy.log2(make_matrix({ "A_CDS" : [1.5,2.0], "B" : [0.5,2.0/3] },["S1","S2"]) + 1)
    assert_table_equal(outfiles["te_log2"],logged)
    assert_table_equal(outfiles["te_centered"],logged)

@pytest.mark.functional
def test_te_subsets(inputs):
    run_script(main,_argstr(inputs,"--subsets"))

    # a single feature per subset normalizes to one million in each sample
    for subset, key in (("canonical","A_CDS"),("noncanonical","B")):
        outfiles = output_names("%s_%s" % (inputs["outbase"],subset))
        ones = make_matrix({ key : [1.0,1.0] },["S1","S2"])
        assert_table_equal(outfiles["ppm"],ones*1e6)
        assert_table_equal(outfiles["te"],ones)
        assert_table_equal(outfiles["te_centered"],ones*0)

    assert os.path.exists(output_names(inputs["outbase"])["te"])

@pytest.mark.functional
def test_te_requires_lengths(inputs):
    argstr = "%s --ribo_counts %s --rna_counts %s" % (inputs["outbase"],inputs["ribo"],inputs["rna"])
    with pytest.raises(SystemExit):
        run_script(main,argstr)
