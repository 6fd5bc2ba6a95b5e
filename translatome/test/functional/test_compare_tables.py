#!/usr/bin/env python
"""Test suite for :py:mod:`translatome.bin.compare_tables`"""
import numpy
import pandas as pd
import pytest

from translatome.bin.compare_tables import main, equal_enough, compare_tables
from translatome.test.common import write_text

TABLE = """## first table
feature_id\tS1\tS2\tlabel
G1\t1.0\t2.5\tuORF
G2\tnan\tinf\tCDS
G3\t0\t-inf\tCDS
"""

# same data, rows and columns reordered, tiny numeric differences
REORDERED = """feature_id\tlabel\tS2\tS1
G3\tCDS\t-inf\t0.0000000001
G1\tuORF\t2.5\t1.0
G2\tCDS\tinf\tnan
"""


@pytest.mark.unit
def test_equal_enough():
    tests = [(numpy.array([1.0,numpy.nan,numpy.inf]),numpy.array([1.0,numpy.nan,numpy.inf]),True),
             (numpy.array([1.0,numpy.nan]),numpy.array([1.0,1.0]),False),
             (numpy.array([numpy.inf]),numpy.array([-numpy.inf]),False),
             (numpy.array([1.0,2.0]),numpy.array([1.0,2.1]),False),
             (numpy.array([1,2]),numpy.array([1.0,2.0]),True),
             (numpy.array(["a","b"],dtype=object),numpy.array(["a","b"],dtype=object),True),
             (numpy.array(["a","b"],dtype=object),numpy.array(["a","c"],dtype=object),False),
             (numpy.array(["1","2"],dtype=object),numpy.array([1,2]),False),
            ]
    for col1, col2, expected in tests:
        assert equal_enough(col1,col2) == expected, (col1,col2)

@pytest.mark.unit
def test_compare_tables_reports_differences():
    df1 = pd.DataFrame({ "S1" : [1,2], "S2" : [3,4] },index=["G1","G2"])
    df2 = pd.DataFrame({ "S1" : [1,2], "S3" : [3,4] },index=["G1","G3"])
    equivalent, failures = compare_tables(df1,df2)
    assert not equivalent
    assert any("different columns" in X for X in failures)
    assert any("different rows" in X for X in failures)

@pytest.mark.functional
def test_main(tmp_path):
    fn1 = write_text(tmp_path,"a.txt",TABLE)
    fn2 = write_text(tmp_path,"b.txt",REORDERED)
    fn3 = write_text(tmp_path,"c.txt",REORDERED.replace("uORF","dORF"))

    assert main([fn1,fn2]) == 0
    assert main([fn1,fn2,"--tol","1e-12"]) == 1
    assert main([fn1,fn3]) == 1
    assert main([fn1,fn3,"--exclude","label"]) == 0
