#!/usr/bin/env python
"""Test suite for :py:mod:`translatome.quant.matrices`"""
import unittest
import numpy
import pandas as pd
import pytest
from pandas.testing import assert_frame_equal

from translatome.quant.config import PipelineConfig
from translatome.quant.reconcile import reconcile, Reconciliation
from translatome.quant.matrices import check_count_matrix, apply_reconciliation,\
                                       mark_canonical, is_canonical,\
                                       harmonize_columns, concatenate_matrices,\
                                       assemble_count_matrix, filter_min_mean,\
                                       select_samples
from translatome.util.services.exceptions import ColumnSetMismatch,\
                                                 DuplicateFeatureKeys,\
                                                 DuplicateSampleMapping,\
                                                 SchemaMismatch,\
                                                 DataWarning
from translatome.test.common import make_matrix, make_metadata


@pytest.mark.unit
class TestConcatenation(unittest.TestCase):

    def setUp(self):
        self.m1 = make_matrix({ "ORF1" : [1,2,3], "ORF2" : [4,5,6] },["S1","S2","S3"])
        self.m2 = make_matrix({ "G1_CDS" : [7,9,8] },["S1","S3","S2"])

    def test_reorders_columns_before_merging(self):
        merged = concatenate_matrices([self.m1,self.m2])
        expected = make_matrix({ "ORF1"   : [1,2,3],
                                 "ORF2"   : [4,5,6],
                                 "G1_CDS" : [7,8,9] },["S1","S2","S3"])
        assert_frame_equal(merged,expected)

    def test_different_columns_raise(self):
        m3 = make_matrix({ "G2_CDS" : [1,2,3] },["S1","S2","S4"])
        with self.assertRaises(ColumnSetMismatch) as ctx:
            concatenate_matrices([self.m1,m3],names=["orfs","cds"])
        self.assertEqual(ctx.exception.only1,["S3"])
        self.assertEqual(ctx.exception.only2,["S4"])
        self.assertIn("orfs",str(ctx.exception))

    def test_duplicate_keys_raise(self):
        m3 = make_matrix({ "ORF2" : [1,2,3] },["S1","S2","S3"])
        with self.assertRaises(DuplicateFeatureKeys) as ctx:
            concatenate_matrices([self.m1,m3])
        self.assertEqual(ctx.exception.keys,["ORF2"])

    def test_duplicate_keys_are_schema_mismatch(self):
        self.assertTrue(issubclass(DuplicateFeatureKeys,SchemaMismatch))

    def test_harmonize_returns_reference_order(self):
        out = harmonize_columns(self.m1,self.m2)
        self.assertEqual(list(out.columns),["S1","S2","S3"])
        self.assertEqual(list(out.loc["G1_CDS"]),[7,8,9])

    def test_empty_input(self):
        with self.assertRaises(ValueError):
            concatenate_matrices([])


@pytest.mark.unit
class TestCanonical(unittest.TestCase):

    def test_mark_canonical(self):
        counts = make_matrix({ "G1" : [1], "G2_CDS" : [2] },["S1"])
        out = mark_canonical(counts,"_CDS")
        self.assertEqual(list(out.index),["G1_CDS","G2_CDS"])
        self.assertEqual(list(counts.index),["G1","G2_CDS"])

    def test_is_canonical(self):
        found = is_canonical(["G1_CDS","G1_uORF1","G2_CDS_x"],"_CDS")
        numpy.testing.assert_array_equal(found,[True,False,False])


@pytest.mark.unit
class TestCheckCountMatrix(unittest.TestCase):

    def test_valid(self):
        check_count_matrix(make_matrix({ "G1" : [0,1.5] },["S1","S2"]))

    def test_negative(self):
        with self.assertRaises(ValueError):
            check_count_matrix(make_matrix({ "G1" : [0,-1] },["S1","S2"]))

    def test_missing(self):
        with self.assertRaises(ValueError):
            check_count_matrix(make_matrix({ "G1" : [0,numpy.nan] },["S1","S2"]))

    def test_non_numeric(self):
        with self.assertRaises(ValueError):
            check_count_matrix(make_matrix({ "G1" : [0,"a"] },["S1","S2"]))

    def test_duplicate_features(self):
        counts = pd.DataFrame([[1],[2]],index=["G1","G1"],columns=["S1"])
        with self.assertRaises(DuplicateFeatureKeys):
            check_count_matrix(counts)

    def test_duplicate_samples(self):
        counts = pd.DataFrame([[1,2]],index=["G1"],columns=["S1","S1"])
        with self.assertRaises(DuplicateSampleMapping):
            check_count_matrix(counts)


@pytest.mark.unit
class TestApplyReconciliation(unittest.TestCase):

    def test_rename_and_drop(self):
        metadata = make_metadata([("MB01","MB01_R1.fq.gz"),("MB02","MB02_R1.fq.gz")])
        counts = make_matrix({ "G1" : [1,2,3], "G2" : [4,5,6] },["MB02_R1","MB01_R1","junk"])
        with pytest.warns(DataWarning):
            result = reconcile(counts.columns,metadata,"rnaseq_files")
        with pytest.warns(DataWarning,match="junk"):
            renamed = apply_reconciliation(counts,result)

        expected = make_matrix({ "G1" : [2,1], "G2" : [5,4] },["MB01","MB02"])
        assert_frame_equal(renamed,expected)

    def test_shared_samples_summed(self):
        table = pd.DataFrame({ "candidate" : ["L1_S1","L2_S1","L1_S2"],
                               "sample_id" : ["S1","S1","S2"],
                               "row"       : [0,0,1] })
        reconciliation = Reconciliation(table,[])
        counts = make_matrix({ "G1" : [1,2,3], "G2" : [4,5,6] },["L1_S1","L1_S2","L2_S1"])
        config = PipelineConfig.for_granularity("gene",allow_shared_samples=True)

        summed = apply_reconciliation(counts,reconciliation,config=config)
        expected = make_matrix({ "G1" : [4,2], "G2" : [10,5] },["S1","S2"])
        assert_frame_equal(summed,expected)

        with self.assertRaises(DuplicateSampleMapping):
            apply_reconciliation(counts,reconciliation)

    def test_absent_candidates(self):
        table = pd.DataFrame({ "candidate" : ["X"], "sample_id" : ["S1"], "row" : [0] })
        counts = make_matrix({ "G1" : [1] },["Y"])
        with self.assertRaises(SchemaMismatch):
            apply_reconciliation(counts,Reconciliation(table,[]))


@pytest.mark.unit
class TestAssembleCountMatrix(unittest.TestCase):

    def test_assemble_with_canonical_table(self):
        metadata = make_metadata([("S1","s1_R1.fq"),("S2","s2_R1.fq")])
        orfs = make_matrix({ "G1_uORF1" : [1,2], "G1_CDS" : [0,0] },["s2_R1","s1_R1"])
        cds  = make_matrix({ "G1" : [10,20] },["s1_R1","s2_R1"])
        result = reconcile(["s1_R1","s2_R1"],metadata,"rnaseq_files")

        with self.assertRaises(DuplicateFeatureKeys):
            assemble_count_matrix([orfs,cds],result,canonical=[False,True])

        orfs = orfs.drop("G1_CDS")
        merged = assemble_count_matrix([orfs,cds],result,canonical=[False,True])
        expected = make_matrix({ "G1_uORF1" : [2,1], "G1_CDS" : [10,20] },["S1","S2"])
        assert_frame_equal(merged,expected)

    def test_lengths_must_match(self):
        result = Reconciliation(pd.DataFrame({ "candidate" : [], "sample_id" : [], "row" : [] }),[])
        with self.assertRaises(ValueError):
            assemble_count_matrix([make_matrix({ "G1" : [1] },["a"])],result,canonical=[True,False])


@pytest.mark.unit
class TestFilters(unittest.TestCase):

    def test_filter_min_mean_is_strict(self):
        counts = make_matrix({ "G1" : [4,4], "G2" : [4,6], "G3" : [0,0] },["S1","S2"])
        self.assertEqual(list(filter_min_mean(counts,4).index),["G2"])

    def test_select_samples(self):
        counts = make_matrix({ "G1" : [1,2,3] },["S1","S2","S3"])
        self.assertEqual(list(select_samples(counts,["S3","S1"]).columns),["S3","S1"])
        with self.assertRaises(SchemaMismatch):
            select_samples(counts,["S4"])
